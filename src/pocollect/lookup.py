import json
import logging
import pathlib
import re

logger = logging.getLogger(__name__)

_NON_KEY_CHARS = re.compile(r"[^a-z0-9.\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_key(text: str) -> str:
    """Turn an English display string into a dotted lookup key.

    "Upload files!" becomes "upload.files". Dots are kept so that a key
    normalizes to itself. Distinct strings may collide.
    """
    return _WHITESPACE.sub(".", _NON_KEY_CHARS.sub("", text.lower()))


def missing_marker(key: str) -> str:
    return f"[{key}]"


class I18nLookupService:
    """Resolves keys against a collected translation store.

    Lookup order: ``<package>:<key>`` in the locale, ``key`` in the locale,
    ``key`` in the default locale. Unresolved keys come back as ``[key]``.
    """

    def __init__(
        self,
        translations: dict[str, dict[str, str]] | None = None,
        default_locale: str = "en",
        current_locale: str | None = None,
    ) -> None:
        self.translations = translations or {}
        self.default_locale = default_locale
        self._current_locale = current_locale or default_locale

    @classmethod
    def from_file(cls, path: str | pathlib.Path, **kwargs) -> "I18nLookupService":
        file = pathlib.Path(path)
        translations: dict[str, dict[str, str]] = {}
        try:
            translations = json.loads(file.read_text("utf-8"))
        except FileNotFoundError:
            logger.warning(f"Translation store {file} not found, lookups will miss")
        except (OSError, json.JSONDecodeError) as ex:
            logger.error(f"Error loading translation store {file}: {ex}")
        return cls(translations, **kwargs)

    @property
    def current_locale(self) -> str:
        return self._current_locale

    @property
    def available_locales(self) -> list[str]:
        return sorted(self.translations)

    def switch_locale(self, locale: str) -> None:
        if locale not in self.translations:
            logger.warning(f"No translations loaded for locale {locale}")
        self._current_locale = locale

    def _get(self, locale: str, key: str) -> str | None:
        return self.translations.get(locale, {}).get(key) or None

    def resolve(
        self,
        key: str,
        locale: str | None = None,
        package_name: str | None = None,
        default_locale: str | None = None,
    ) -> str:
        target_locale = locale or self._current_locale
        fallback_locale = default_locale or self.default_locale

        candidates = []
        if package_name:
            candidates.append((target_locale, f"{package_name}:{key}"))
        candidates.append((target_locale, key))
        candidates.append((fallback_locale, key))

        for candidate_locale, candidate_key in candidates:
            value = self._get(candidate_locale, candidate_key)
            if value is not None:
                return value

        package_info = f' in package "{package_name}"' if package_name else ""
        logger.debug(
            f'Missing translation for key "{key}"{package_info} for locale "{target_locale}"'
        )
        return missing_marker(key)

    def has_translation(
        self, key: str, locale: str | None = None, package_name: str | None = None
    ) -> bool:
        target_locale = locale or self._current_locale
        lookup_key = f"{package_name}:{key}" if package_name else key
        return self._get(target_locale, lookup_key) is not None

    @staticmethod
    def is_missing(value: str) -> bool:
        return value.startswith("[") and value.endswith("]")

    def expected_text(
        self,
        display_text: str,
        locale: str | None = None,
        package_name: str | None = None,
    ) -> str:
        """Translation a UI element showing ``display_text`` should render.

        The display string is tried as a msgid first, then as its normalized
        key. Falls back to the display string itself.
        """
        for key in (display_text, normalize_key(display_text)):
            if not key:
                continue
            value = self.resolve(key, locale, package_name)
            if not self.is_missing(value):
                return value
        return display_text

    def text_matches(
        self,
        actual_text: str | None,
        display_text: str,
        locale: str | None = None,
        package_name: str | None = None,
    ) -> bool:
        expected = self.expected_text(display_text, locale, package_name)
        return actual_text is not None and expected in actual_text
