from datetime import datetime, timezone
import logging
import pathlib

from pocollect.classes import LocaleComparison, PotComparisonReport
from pocollect.collector import TranslationStore
from pocollect.errors import TemplateConfigurationError
from pocollect.parser import parse_catalog, read_catalog

logger = logging.getLogger(__name__)


def read_template_keys(pot_file: pathlib.Path) -> list[str]:
    """Return the msgids of a template in file order, without duplicates.

    Raises ``MissingFileError`` when the template does not exist.
    """
    keys = dict.fromkeys(entry.source_key for entry in parse_catalog(read_catalog(pot_file)))
    logger.info(f"Template {pot_file} has {len(keys)} strings")
    return list(keys)


def check_template(template_keys: set[str]) -> None:
    if not template_keys:
        raise TemplateConfigurationError("Template contains no strings")


def compare_locale(
    template_keys: set[str], locale_keys: set[str]
) -> LocaleComparison:
    missing_from_locale = template_keys - locale_keys
    missing_from_pot = locale_keys - template_keys
    coverage = None
    if template_keys:
        coverage = (
            (len(template_keys) - len(missing_from_locale)) / len(template_keys) * 100
        )
    return LocaleComparison(
        total_translations=len(locale_keys),
        missing_from_pot=sorted(missing_from_pot),
        missing_from_locale=sorted(missing_from_locale),
        coverage_percentage=coverage,
    )


def compare_with_template(
    store: TranslationStore | dict[str, dict[str, str]],
    template_keys: list[str],
) -> PotComparisonReport:
    """Diff every locale of ``store`` against the template's strings.

    An empty template is reported as a configuration error and every locale
    gets an undefined coverage.
    """
    translations = store.to_dict() if isinstance(store, TranslationStore) else store
    template = set(template_keys)

    error = None
    try:
        check_template(template)
    except TemplateConfigurationError as ex:
        error = str(ex)
        logger.error(f"{error}, coverage cannot be computed")

    report = PotComparisonReport(
        generated_at=datetime.now(timezone.utc).isoformat(),
        template_strings=list(template_keys),
        locales={},
        error=error,
    )
    for locale, keys in translations.items():
        comparison = compare_locale(template, set(keys))
        report.locales[locale] = comparison
        if comparison.coverage_percentage is not None:
            logger.info(
                f"{locale}: {comparison.coverage_percentage:.1f}% of template strings translated, "
                f"{len(comparison.missing_from_locale)} missing"
            )
    return report
