from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
import os
import pathlib

from pocollect.classes import CatalogEntry, CatalogTranslations, ValidationReport
from pocollect.errors import MissingFileError, PoCollectError
from pocollect.parser import parse_catalog, read_catalog
from pocollect.validation import create_validation_report

logger = logging.getLogger(__name__)

CATALOG_PATH = pathlib.Path("LC_MESSAGES") / "messages.po"


def namespaced_key(package_name: str, key: str) -> str:
    return f"{package_name}:{key}"


def is_active(entry: CatalogEntry) -> bool:
    return (
        not entry.is_fuzzy
        and not entry.is_obsolete
        and bool(entry.source_key)
        and bool(entry.translated_text)
    )


def extract_translations(
    entries: Iterable[CatalogEntry], package_name: str
) -> CatalogTranslations:
    translations = CatalogTranslations()
    for entry in entries:
        if not is_active(entry):
            continue
        value = entry.translated_text.strip() or entry.source_key
        translations.bare[entry.source_key] = value
        translations.namespaced.setdefault(
            namespaced_key(package_name, entry.source_key), value
        )
    return translations


def aggregate(
    entries: Iterable[CatalogEntry],
    package_name: str,
    target: dict[str, str] | None = None,
) -> dict[str, str]:
    """Fold active catalog entries into a flat key -> text mapping.

    The bare msgid is overwritten by later entries; ``<package>:<msgid>`` is
    only written when absent from ``target``.
    """
    output = target if target is not None else {}
    translations = extract_translations(entries, package_name)
    output.update(translations.bare)
    for key, value in translations.namespaced.items():
        output.setdefault(key, value)
    return output


class TranslationStore:
    """Per-locale accumulator for merged package translations.

    Must be merged from a single thread in a stable order, since namespaced
    keys keep the first value written.
    """

    def __init__(self) -> None:
        self._locales: dict[str, dict[str, str]] = {}

    def merge(self, locale: str, translations: CatalogTranslations) -> None:
        store = self._locales.setdefault(locale, {})
        store.update(translations.bare)
        for key, value in translations.namespaced.items():
            store.setdefault(key, value)

    def merge_package(self, package_translations: dict[str, CatalogTranslations]) -> None:
        for locale, translations in package_translations.items():
            self.merge(locale, translations)

    @property
    def locales(self) -> list[str]:
        return list(self._locales)

    def keys_for(self, locale: str) -> set[str]:
        return set(self._locales.get(locale, {}))

    def get(self, locale: str, key: str) -> str | None:
        return self._locales.get(locale, {}).get(key)

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {locale: dict(keys) for locale, keys in self._locales.items()}

    def __len__(self) -> int:
        return len(self._locales)


def parse_po_file(po_file: pathlib.Path, package_name: str) -> CatalogTranslations:
    """Read a catalog and return its active translations.

    Failures are logged and yield no translations.
    """
    logger.debug(f"Parsing {po_file}")
    try:
        return extract_translations(parse_catalog(read_catalog(po_file)), package_name)
    except MissingFileError as ex:
        logger.warning(str(ex))
    except PoCollectError as ex:
        logger.warning(f"Failed to parse {po_file}: {ex}")
    return CatalogTranslations()


def resolve_package_path(
    package_name: str, search_dirs: Iterable[str | pathlib.Path]
) -> pathlib.Path | None:
    for directory in search_dirs:
        candidate = pathlib.Path(directory) / package_name
        if candidate.exists():
            return candidate
    return None


def default_search_dirs(search_dirs: Iterable[str | pathlib.Path] = ()) -> list[pathlib.Path]:
    dirs = [pathlib.Path(d) for d in search_dirs]
    packages_dir = os.environ.get("INVENIO_PACKAGES_DIR")
    if packages_dir:
        dirs.insert(0, pathlib.Path(packages_dir))
    return dirs


def find_catalogs(
    package_path: pathlib.Path, package_name: str
) -> list[tuple[str, pathlib.Path]]:
    """List ``(locale, messages.po)`` pairs for a package, sorted by locale."""
    translations_dir = package_path / package_name / "translations"
    if not translations_dir.exists():
        translations_dir = package_path / "translations"
    if not translations_dir.is_dir():
        return []

    catalogs = []
    for locale_dir in sorted(translations_dir.iterdir()):
        if not locale_dir.is_dir():
            continue
        po_file = locale_dir / CATALOG_PATH
        if po_file.is_file():
            catalogs.append((locale_dir.name, po_file))
    return catalogs


@dataclass
class PackageScan:
    package_name: str
    path: pathlib.Path
    translations: dict[str, CatalogTranslations] = field(default_factory=dict)
    validation_reports: list[ValidationReport] = field(default_factory=list)


def scan_package(
    package_path: pathlib.Path,
    package_name: str,
    include_validation: bool = False,
    max_workers: int | None = None,
) -> PackageScan:
    scan = PackageScan(package_name, package_path)
    catalogs = find_catalogs(package_path, package_name)
    if not catalogs:
        return scan

    def process(item: tuple[str, pathlib.Path]):
        locale, po_file = item
        translations = parse_po_file(po_file, package_name)
        report = None
        if include_validation:
            report = create_validation_report(po_file, package_name, locale)
        return locale, translations, report

    # map() yields in submission order, so merging stays deterministic.
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for locale, translations, report in executor.map(process, catalogs):
            scan.translations[locale] = translations
            if report is not None:
                scan.validation_reports.append(report)
    return scan


@dataclass
class CollectionResult:
    packages: list[str]
    store: TranslationStore = field(default_factory=TranslationStore)
    package_translations: dict[str, dict[str, dict[str, str]]] = field(
        default_factory=dict
    )
    validation_reports: list[ValidationReport] = field(default_factory=list)
    package_count: int = 0
    missing_packages: list[str] = field(default_factory=list)


def collect_translations(
    packages: list[str],
    search_dirs: Iterable[str | pathlib.Path] = (),
    include_validation: bool = False,
    max_workers: int | None = None,
) -> CollectionResult:
    result = CollectionResult(list(packages))
    dirs = default_search_dirs(search_dirs)

    for package in packages:
        package_path = resolve_package_path(package, dirs)
        if package_path is None:
            logger.warning(f"Package not found: {package}")
            result.missing_packages.append(package)
            continue

        package_name = package.replace("-", "_")
        scan = scan_package(package_path, package_name, include_validation, max_workers)
        if not scan.translations:
            logger.info(f"No translations found for {package_name} ({package_path})")
            continue

        result.package_translations[package_name] = {
            locale: translations.to_dict()
            for locale, translations in scan.translations.items()
        }
        result.store.merge_package(scan.translations)
        result.validation_reports.extend(scan.validation_reports)
        result.package_count += 1
        logger.info(
            f"{package_name}: {len(scan.translations)} locales ({package_path})"
        )

    logger.info(
        f"Total: {len(result.store)} locales across {result.package_count} packages"
    )
    return result
