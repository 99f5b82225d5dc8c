import json
import logging
import pathlib
from typing import Any

from pocollect.classes import ValidationSummary

logger = logging.getLogger(__name__)

TRANSLATIONS_FILE = "translations.json"
VALIDATION_REPORT_FILE = "validation-report.json"
VALIDATION_MARKDOWN_FILE = "validation-report.md"
POT_COMPARISON_FILE = "pot-comparison.json"


def write_json_file(output_dir: pathlib.Path, filename: str, data: Any) -> pathlib.Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / filename
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), "utf-8")
    logger.debug(f"Wrote {path}")
    return path


def write_package_translations(
    output_dir: pathlib.Path,
    package_name: str,
    translations: dict[str, dict[str, str]],
) -> pathlib.Path:
    return write_json_file(output_dir / package_name, TRANSLATIONS_FILE, translations)


def render_markdown(summary: ValidationSummary) -> str:
    markdown = "# Translation validation\n\n"
    markdown += (
        f"{summary.total_issues} issues in {summary.total_packages} packages "
        f"and {summary.total_locales} locales "
        f"({summary.untranslated_strings} untranslated, "
        f"{summary.fuzzy_translations} fuzzy)\n\n"
    )

    reports = [report for report in summary.reports if report.issues.total]
    if not reports:
        return markdown + "No issues found\n"

    for report in reports:
        markdown += f"## {report.package} ({report.locale})\n"
        markdown += f"`{report.file}`\n\n"
        markdown += "| Message | Issue |\n| ------- | --------- |\n"
        for key in report.issues.obsolete_translations:
            markdown += f"| `{key}` | Obsolete |\n"
        for key in report.issues.fuzzy_translations:
            markdown += f"| `{key}` | Fuzzy |\n"
        for key in report.issues.untranslated:
            markdown += f"| `{key}` | Untranslated |\n"
        markdown += "\n"
    return markdown


def write_markdown_report(
    output_dir: pathlib.Path, summary: ValidationSummary
) -> pathlib.Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / VALIDATION_MARKDOWN_FILE
    path.write_text(render_markdown(summary), "utf-8")
    return path
