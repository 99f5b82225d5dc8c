import logging
import os
import pathlib
import sys
from typing import Any

import yaml

import click
from pocollect import collector, output, template, validation
from pocollect.errors import MissingFileError, PoCollectError
from pocollect.lookup import I18nLookupService

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    "collect": {
        "packages": ["invenio-app-rdm", "invenio-rdm-records"],
        "search_dirs": [".."],
        "output_dir": "translations",
        "max_workers": None,
    },
    "thresholds": {
        "max_untranslated": 30000,
        "max_fuzzy": 5000,
        "min_coverage": 20.0,
    },
}


def load_config(config_folder: str) -> dict[str, Any]:
    config_file_path = os.path.abspath(f"{config_folder}/config.yml")

    loaded: dict[str, Any] = {}
    try:
        with open(config_file_path, "r") as file:
            loaded = yaml.safe_load(file) or {}
    except FileNotFoundError:
        logger.error(f"File not found: {config_file_path}, using defaults.")
    except yaml.YAMLError as exc:
        logger.error(sys._getframe().f_code.co_name + " " + str(exc))
        sys.exit(1)

    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}
    for section, values in loaded.items():
        if isinstance(values, dict) and section in config:
            config[section].update(values)
        else:
            config[section] = values

    output_dir = os.environ.get("I18N_OUTPUT_DIR")
    if output_dir:
        config["collect"]["output_dir"] = output_dir
    return config


def setup(config_folder: str) -> dict[str, Any]:
    config = load_config(config_folder)
    logging.basicConfig(
        level=logging.getLevelName(config["logging"]["level"]),
        format=config["logging"]["format"],
        datefmt=config["logging"]["datefmt"],
    )
    return config


@click.group()
@click.version_option()
def cli() -> None:
    pass


@cli.command("collect")
@click.argument("packages", nargs=-1)
@click.option("--config-folder", default="config", help="Configuration folder path.")
@click.option("--output-dir", default=None, help="Where to write the JSON artifacts.")
@click.option(
    "--packages-dir",
    multiple=True,
    help="Folder containing the packages. Can be given several times.",
)
@click.option("--validate", is_flag=True, help="Also write the validation report.")
@click.option("--workers", type=int, default=None, help="Parallel catalog parsers.")
def collect(
    packages: tuple[str, ...],
    config_folder: str,
    output_dir: str | None,
    packages_dir: tuple[str, ...],
    validate: bool,
    workers: int | None,
) -> None:
    """Collect PO catalogs of PACKAGES into translations.json."""
    config = setup(config_folder)
    settings = config["collect"]

    package_list = list(packages) or list(settings["packages"])
    search_dirs = list(packages_dir) or list(settings["search_dirs"])
    output_path = pathlib.Path(output_dir or settings["output_dir"])

    logger.info(
        f"Collecting translations from {'specified' if packages else 'default'} packages"
    )
    if validate:
        logger.info("Validation enabled - generating translation quality report")

    result = collector.collect_translations(
        package_list,
        search_dirs,
        include_validation=validate,
        max_workers=workers or settings["max_workers"],
    )

    for package_name, translations in result.package_translations.items():
        output.write_package_translations(output_path, package_name, translations)
    output.write_json_file(output_path, output.TRANSLATIONS_FILE, result.store.to_dict())

    if validate and result.validation_reports:
        summary = validation.create_validation_summary(
            package_list,
            result.package_count,
            len(result.store),
            result.validation_reports,
        )
        report_path = output.write_json_file(
            output_path, output.VALIDATION_REPORT_FILE, summary.to_dict()
        )
        output.write_markdown_report(output_path, summary)
        logger.info("Validation Summary:")
        logger.info(f"  Total issues found: {summary.total_issues}")
        logger.info(f"  Untranslated strings: {summary.untranslated_strings}")
        logger.info(f"  Fuzzy translations: {summary.fuzzy_translations}")
        logger.info(f"  Report saved: {report_path}")


@cli.command("compare")
@click.option("--config-folder", default="config", help="Configuration folder path.")
@click.option("--pot-file", required=True, help="Template (.pot) file path.")
@click.option("--output-dir", default=None, help="Folder holding translations.json.")
def compare(config_folder: str, pot_file: str, output_dir: str | None) -> None:
    """Compare collected translations against a template."""
    config = setup(config_folder)
    output_path = pathlib.Path(output_dir or config["collect"]["output_dir"])

    try:
        template_keys = template.read_template_keys(pathlib.Path(pot_file))
    except MissingFileError as ex:
        logger.error(f"{ex}. Generate the template first.")
        template_keys = []
    except PoCollectError as ex:
        logger.error(f"Cannot use template {pot_file}: {ex}")
        template_keys = []

    lookup = I18nLookupService.from_file(output_path / output.TRANSLATIONS_FILE)
    report = template.compare_with_template(lookup.translations, template_keys)
    report_path = output.write_json_file(
        output_path, output.POT_COMPARISON_FILE, report.to_dict()
    )
    logger.info(f"Template comparison saved: {report_path}")


@cli.command("check")
@click.option("--config-folder", default="config", help="Configuration folder path.")
@click.option("--output-dir", default=None, help="Folder holding validation-report.json.")
def check(config_folder: str, output_dir: str | None) -> None:
    """Fail when the validation report exceeds the quality thresholds."""
    config = setup(config_folder)
    output_path = pathlib.Path(output_dir or config["collect"]["output_dir"])
    report_path = output_path / output.VALIDATION_REPORT_FILE

    if not report_path.is_file():
        logger.warning(f"Validation report missing: {report_path}. Run collect --validate.")
        return

    summary = validation.load_validation_summary(report_path)
    thresholds = validation.Thresholds(**config["thresholds"])
    failures = validation.check_thresholds(summary, thresholds)
    for failure in failures:
        logger.error(failure)
    if failures:
        sys.exit(1)
    logger.info("Translation quality thresholds met")


@cli.command("lookup")
@click.argument("key")
@click.option("--config-folder", default="config", help="Configuration folder path.")
@click.option("--output-dir", default=None, help="Folder holding translations.json.")
@click.option("--locale", default=None, help="Target locale.")
@click.option("--package", "package_name", default=None, help="Package namespace.")
@click.option("--default-locale", default="en", help="Fallback locale.")
def lookup(
    key: str,
    config_folder: str,
    output_dir: str | None,
    locale: str | None,
    package_name: str | None,
    default_locale: str,
) -> None:
    """Print the translation KEY resolves to."""
    config = setup(config_folder)
    output_path = pathlib.Path(output_dir or config["collect"]["output_dir"])
    service = I18nLookupService.from_file(
        output_path / output.TRANSLATIONS_FILE, default_locale=default_locale
    )
    click.echo(service.resolve(key, locale, package_name))
