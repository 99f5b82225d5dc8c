"""
Tests for translation aggregation and package collection.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from pocollect.classes import CatalogEntry, CatalogTranslations
from pocollect.collector import (
    TranslationStore,
    aggregate,
    collect_translations,
    extract_translations,
    find_catalogs,
    is_active,
    parse_po_file,
    resolve_package_path,
    scan_package,
)


class TestAggregate:
    """Folding parsed entries into flat and namespaced keys."""

    def test_active_entry_emits_both_keys(self) -> None:
        result = aggregate([CatalogEntry("Home", "Accueil")], "pkg")
        assert result == {"Home": "Accueil", "pkg:Home": "Accueil"}

    @pytest.mark.parametrize(
        "entry",
        [
            CatalogEntry("Save", "Enregistrer", is_fuzzy=True),
            CatalogEntry("Old", "Alt", is_obsolete=True),
            CatalogEntry("Cancel", ""),
            CatalogEntry("", "header"),
        ],
    )
    def test_inactive_entries_are_excluded(self, entry: CatalogEntry) -> None:
        assert not is_active(entry)
        assert aggregate([entry], "pkg") == {}

    def test_whitespace_translation_falls_back_to_key(self) -> None:
        result = aggregate([CatalogEntry("Home", "   ")], "pkg")
        assert result["Home"] == "Home"

    def test_translation_is_trimmed(self) -> None:
        result = aggregate([CatalogEntry("Home", " Accueil ")], "pkg")
        assert result["Home"] == "Accueil"

    def test_duplicate_key_last_bare_first_namespaced(self) -> None:
        entries = [CatalogEntry("Home", "one"), CatalogEntry("Home", "two")]
        result = aggregate(entries, "pkg")
        assert result["Home"] == "two"
        assert result["pkg:Home"] == "one"

    def test_target_is_mutated(self) -> None:
        target = {"pkg:Home": "existing"}
        returned = aggregate([CatalogEntry("Home", "Accueil")], "pkg", target)
        assert returned is target
        assert target == {"pkg:Home": "existing", "Home": "Accueil"}


class TestExtractTranslations:
    """Bare and namespaced keys kept apart."""

    def test_keys_are_split(self) -> None:
        entries = [CatalogEntry("Home", "one"), CatalogEntry("Home", "two")]
        translations = extract_translations(entries, "pkg")
        assert translations.bare == {"Home": "two"}
        assert translations.namespaced == {"pkg:Home": "one"}
        assert translations.to_dict() == {"Home": "two", "pkg:Home": "one"}

    def test_msgid_that_looks_namespaced_stays_bare(self) -> None:
        translations = extract_translations([CatalogEntry("pkg:Home", "x")], "pkg")
        assert translations.bare == {"pkg:Home": "x"}
        assert translations.namespaced == {"pkg:pkg:Home": "x"}


class TestTranslationStore:
    """Merge rules of the per-locale store."""

    def test_bare_last_write_namespaced_first_write(self) -> None:
        store = TranslationStore()
        store.merge("en", CatalogTranslations({"Home": "Home A"}, {"A:Home": "Home A"}))
        store.merge("en", CatalogTranslations({"Home": "Home B"}, {"A:Home": "Home B"}))
        assert store.get("en", "Home") == "Home B"
        assert store.get("en", "A:Home") == "Home A"

    def test_bare_key_with_package_prefix_is_overwritten(self) -> None:
        store = TranslationStore()
        store.merge("en", CatalogTranslations({"Home": "Home A"}, {"A:Home": "Home A"}))
        store.merge("en", CatalogTranslations({"A:Home": "from B"}, {"B:A:Home": "from B"}))
        assert store.get("en", "A:Home") == "from B"
        assert store.get("en", "B:A:Home") == "from B"

    def test_bare_key_with_colon_is_overwritten(self) -> None:
        store = TranslationStore()
        store.merge("en", CatalogTranslations({"Error: failed": "one"}))
        store.merge("en", CatalogTranslations({"Error: failed": "two"}))
        assert store.get("en", "Error: failed") == "two"

    def test_locales_and_dict(self) -> None:
        store = TranslationStore()
        store.merge_package(
            {
                "de": CatalogTranslations({"Home": "Startseite"}),
                "fr": CatalogTranslations({"Home": "Accueil"}),
            }
        )
        assert store.locales == ["de", "fr"]
        assert len(store) == 2
        assert store.keys_for("de") == {"Home"}
        assert store.keys_for("it") == set()
        assert store.to_dict() == {"de": {"Home": "Startseite"}, "fr": {"Home": "Accueil"}}


class TestParsePoFile:
    """Reading catalogs from disk."""

    def test_fuzzy_excluded(self, make_catalog: Callable[..., Path]) -> None:
        po_file = make_catalog(
            "p1", "fr", '#, fuzzy\nmsgid "Save"\nmsgstr "Enregistrer"\n\n'
        )
        assert "Save" not in parse_po_file(po_file, "p1").to_dict()

    def test_untranslated_excluded(self, make_catalog: Callable[..., Path]) -> None:
        po_file = make_catalog("p1", "fr", 'msgid "Cancel"\nmsgstr ""\n\n')
        assert parse_po_file(po_file, "p1") == CatalogTranslations()

    def test_missing_file_yields_empty(self, tmp_path: Path) -> None:
        assert parse_po_file(tmp_path / "nope.po", "p1") == CatalogTranslations()

    def test_undecodable_file_yields_empty(self, tmp_path: Path) -> None:
        po_file = tmp_path / "broken.po"
        po_file.write_bytes(b'msgid "Home"\nmsgstr "\xff\xfe"\n')
        assert parse_po_file(po_file, "p1") == CatalogTranslations()


class TestPackageDiscovery:
    """Locating packages and their catalogs."""

    def test_resolve_package_path_first_match(self, tmp_path: Path) -> None:
        first = tmp_path / "a"
        second = tmp_path / "b"
        (second / "pkg").mkdir(parents=True)
        assert resolve_package_path("pkg", [first, second]) == second / "pkg"
        assert resolve_package_path("other", [first, second]) is None

    def test_find_catalogs_module_layout(
        self, make_catalog: Callable[..., Path], packages_dir: Path
    ) -> None:
        make_catalog("my-pkg", "fr", 'msgid "Home"\nmsgstr "Accueil"\n')
        make_catalog("my-pkg", "de", 'msgid "Home"\nmsgstr "Startseite"\n')
        catalogs = find_catalogs(packages_dir / "my-pkg", "my_pkg")
        assert [locale for locale, _ in catalogs] == ["de", "fr"]

    def test_find_catalogs_flat_layout(self, tmp_path: Path) -> None:
        po_file = tmp_path / "translations" / "it" / "LC_MESSAGES" / "messages.po"
        po_file.parent.mkdir(parents=True)
        po_file.write_text('msgid "Home"\nmsgstr "Casa"\n', "utf-8")
        (tmp_path / "translations" / "README").write_text("not a locale", "utf-8")
        assert find_catalogs(tmp_path, "pkg") == [("it", po_file)]

    def test_find_catalogs_without_translations(self, tmp_path: Path) -> None:
        assert find_catalogs(tmp_path, "pkg") == []

    def test_scan_package_with_validation(
        self, make_catalog: Callable[..., Path], packages_dir: Path
    ) -> None:
        make_catalog("p1", "fr", 'msgid "Home"\nmsgstr "Accueil"\n\nmsgid "Cancel"\nmsgstr ""\n')
        scan = scan_package(packages_dir / "p1", "p1", include_validation=True, max_workers=2)
        assert scan.translations["fr"].to_dict() == {"Home": "Accueil", "p1:Home": "Accueil"}
        (report,) = scan.validation_reports
        assert report.issues.untranslated == ["Cancel"]


class TestCollectTranslations:
    """Collecting several packages into one store."""

    def test_merge_in_package_order(
        self, make_catalog: Callable[..., Path], packages_dir: Path
    ) -> None:
        make_catalog("pkg-a", "en", 'msgid "Home"\nmsgstr "Home A"\n')
        make_catalog("pkg-b", "en", 'msgid "Home"\nmsgstr "Home B"\n')

        result = collect_translations(["pkg-a", "pkg-b"], [packages_dir])

        assert result.package_count == 2
        assert result.store.get("en", "Home") == "Home B"
        assert result.store.get("en", "pkg_a:Home") == "Home A"
        assert result.store.get("en", "pkg_b:Home") == "Home B"
        assert set(result.package_translations) == {"pkg_a", "pkg_b"}

    def test_later_bare_msgid_overwrites_namespaced_key(
        self, make_catalog: Callable[..., Path], packages_dir: Path
    ) -> None:
        make_catalog("pkg-a", "en", 'msgid "Home"\nmsgstr "Home A"\n')
        make_catalog("pkg-b", "en", 'msgid "pkg_a:Home"\nmsgstr "Literal B"\n')

        result = collect_translations(["pkg-a", "pkg-b"], [packages_dir])

        assert result.store.get("en", "pkg_a:Home") == "Literal B"
        assert result.package_translations["pkg_a"]["en"]["pkg_a:Home"] == "Home A"

    def test_missing_package_is_skipped(
        self, make_catalog: Callable[..., Path], packages_dir: Path
    ) -> None:
        make_catalog("pkg-a", "de", 'msgid "Home"\nmsgstr "Startseite"\n')
        result = collect_translations(["ghost", "pkg-a"], [packages_dir])
        assert result.missing_packages == ["ghost"]
        assert result.package_count == 1
        assert result.store.locales == ["de"]

    def test_environment_search_dir(
        self,
        make_catalog: Callable[..., Path],
        packages_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        make_catalog("pkg-a", "de", 'msgid "Home"\nmsgstr "Startseite"\n')
        monkeypatch.setenv("INVENIO_PACKAGES_DIR", str(packages_dir))
        result = collect_translations(["pkg-a"])
        assert result.store.get("de", "Home") == "Startseite"

    def test_validation_reports_collected(
        self, make_catalog: Callable[..., Path], packages_dir: Path
    ) -> None:
        make_catalog("p1", "fr", '#, fuzzy\nmsgid "Save"\nmsgstr "Enregistrer"\n\n')
        result = collect_translations(["p1"], [packages_dir], include_validation=True)
        assert result.store.keys_for("fr") == set()
        (report,) = result.validation_reports
        assert (report.package, report.locale) == ("p1", "fr")
        assert report.issues.fuzzy_translations == ["Save"]
