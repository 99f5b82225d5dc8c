"""
Shared fixtures for pocollect tests.

Builds small package trees with gettext catalogs laid out the way Invenio
packages ship them: <package>/<module>/translations/<locale>/LC_MESSAGES/messages.po
"""

from collections.abc import Callable
from pathlib import Path

import pytest

HEADER = 'msgid ""\nmsgstr ""\n"Project-Id-Version: test 1.0\\n"\n"Language: {locale}\\n"\n\n'


def write_catalog(package_dir: Path, module: str, locale: str, body: str) -> Path:
    po_file = package_dir / module / "translations" / locale / "LC_MESSAGES" / "messages.po"
    po_file.parent.mkdir(parents=True, exist_ok=True)
    po_file.write_text(HEADER.format(locale=locale) + body, "utf-8")
    return po_file


@pytest.fixture
def packages_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "packages"
    directory.mkdir()
    return directory


@pytest.fixture
def make_catalog(packages_dir: Path) -> Callable[[str, str, str], Path]:
    """Create a catalog for (package, locale) under the packages folder."""

    def _make(package: str, locale: str, body: str) -> Path:
        module = package.replace("-", "_")
        return write_catalog(packages_dir / package, module, locale, body)

    return _make
