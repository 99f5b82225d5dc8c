from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
import pathlib

from pocollect.classes import ValidationIssues, ValidationReport, ValidationSummary
from pocollect.errors import ConversionError, PoCollectError, ReportGenerationError
from pocollect.parser import parse_catalog, read_catalog

logger = logging.getLogger(__name__)


def classify(catalog_text: str) -> ValidationIssues:
    """Bucket every entry of a catalog by its problem, if it has one.

    Obsolete wins over fuzzy, fuzzy wins over untranslated. Healthy entries
    are not reported.
    """
    issues = ValidationIssues()
    for entry in parse_catalog(catalog_text):
        if entry.is_obsolete:
            issues.obsolete_translations.append(entry.source_key)
        elif entry.is_fuzzy:
            issues.fuzzy_translations.append(entry.source_key)
        elif not entry.translated_text:
            issues.untranslated.append(entry.source_key)
    return issues


def classify_file(po_file: pathlib.Path) -> ValidationIssues:
    """Classify a catalog on disk.

    Raises ``MissingFileError`` when the file does not exist and
    ``ReportGenerationError`` when it cannot be read.
    """
    try:
        return classify(read_catalog(po_file))
    except ConversionError as ex:
        raise ReportGenerationError(f"Failed to validate {po_file}: {ex}") from ex


def create_validation_report(
    po_file: pathlib.Path, package_name: str, locale: str
) -> ValidationReport | None:
    try:
        issues = classify_file(po_file)
    except PoCollectError as ex:
        logger.warning(str(ex))
        return None
    return ValidationReport(package_name, locale, str(po_file), issues)


def create_validation_summary(
    packages: list[str],
    total_packages: int,
    total_locales: int,
    reports: list[ValidationReport | None],
) -> ValidationSummary:
    valid_reports = [report for report in reports if report is not None]
    return ValidationSummary(
        generated_at=datetime.now(timezone.utc).isoformat(),
        packages=list(packages),
        total_packages=total_packages,
        total_locales=total_locales,
        total_issues=sum(report.issues.total for report in valid_reports),
        untranslated_strings=sum(
            len(report.issues.untranslated) for report in valid_reports
        ),
        fuzzy_translations=sum(
            len(report.issues.fuzzy_translations) for report in valid_reports
        ),
        reports=valid_reports,
    )


def locale_coverage(reports: list[ValidationReport]) -> dict[str, float]:
    """Per-locale coverage over problem entries only.

    ``(problems - untranslated) / problems * 100``, where problems counts
    untranslated, fuzzy and obsolete entries summed over all packages.
    Healthy entries are not part of the denominator. Locales without any
    problem entry are left out.
    """
    totals: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for report in reports:
        counts = report.counts
        totals[report.locale][0] += (
            counts["untranslated"]
            + counts["fuzzyTranslations"]
            + counts["obsoleteTranslations"]
        )
        totals[report.locale][1] += counts["untranslated"]

    return {
        locale: (total - untranslated) / total * 100
        for locale, (total, untranslated) in totals.items()
        if total > 0
    }


@dataclass
class Thresholds:
    max_untranslated: int = 30000
    max_fuzzy: int = 5000
    min_coverage: float = 20.0


def check_thresholds(
    summary: ValidationSummary, thresholds: Thresholds | None = None
) -> list[str]:
    thresholds = thresholds or Thresholds()
    failures = []
    if summary.untranslated_strings > thresholds.max_untranslated:
        failures.append(
            f"Found {summary.untranslated_strings} untranslated strings "
            f"(limit {thresholds.max_untranslated})"
        )
    for locale, coverage in locale_coverage(summary.reports).items():
        if coverage < thresholds.min_coverage:
            failures.append(f"{locale} coverage too low: {coverage:.1f}%")
    if summary.fuzzy_translations > thresholds.max_fuzzy:
        failures.append(
            f"Too many fuzzy translations ({summary.fuzzy_translations}, "
            f"limit {thresholds.max_fuzzy})"
        )
    return failures


def load_validation_summary(path: pathlib.Path) -> ValidationSummary:
    """Rebuild a summary from a previously written validation-report.json."""
    data = json.loads(path.read_text("utf-8"))
    reports = [
        ValidationReport(
            package=report["package"],
            locale=report["locale"],
            file=report["file"],
            issues=ValidationIssues(
                untranslated=report["issues"].get("untranslated", []),
                fuzzy_translations=report["issues"].get("fuzzyTranslations", []),
                obsolete_translations=report["issues"].get("obsoleteTranslations", []),
            ),
        )
        for report in data.get("reports", [])
    ]
    summary = data.get("summary", {})
    return ValidationSummary(
        generated_at=data.get("generatedAt", ""),
        packages=data.get("packages", []),
        total_packages=summary.get("totalPackages", 0),
        total_locales=summary.get("totalLocales", 0),
        total_issues=summary.get("totalIssues", 0),
        untranslated_strings=summary.get("untranslatedStrings", 0),
        fuzzy_translations=summary.get("fuzzyTranslations", 0),
        reports=reports,
    )
