from dataclasses import dataclass, field
from typing import Any


@dataclass
class CatalogEntry:
    source_key: str
    translated_text: str
    is_fuzzy: bool = False
    is_obsolete: bool = False


@dataclass
class CatalogTranslations:
    """Active translations of one catalog, kept apart by key kind.

    ``bare`` maps msgids (last entry wins), ``namespaced`` maps
    ``<package>:<msgid>`` keys (first entry wins).
    """

    bare: dict[str, str] = field(default_factory=dict)
    namespaced: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, str]:
        output = dict(self.bare)
        for key, value in self.namespaced.items():
            output.setdefault(key, value)
        return output


@dataclass
class ValidationIssues:
    untranslated: list[str] = field(default_factory=list)
    fuzzy_translations: list[str] = field(default_factory=list)
    obsolete_translations: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.untranslated)
            + len(self.fuzzy_translations)
            + len(self.obsolete_translations)
        )

    def counts(self) -> dict[str, int]:
        return {
            "untranslated": len(self.untranslated),
            "fuzzyTranslations": len(self.fuzzy_translations),
            "obsoleteTranslations": len(self.obsolete_translations),
        }

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "untranslated": list(self.untranslated),
            "fuzzyTranslations": list(self.fuzzy_translations),
            "obsoleteTranslations": list(self.obsolete_translations),
        }


@dataclass
class ValidationReport:
    package: str
    locale: str
    file: str
    issues: ValidationIssues

    @property
    def counts(self) -> dict[str, int]:
        return self.issues.counts()

    def to_dict(self) -> dict[str, Any]:
        return {
            "package": self.package,
            "locale": self.locale,
            "file": self.file,
            "issues": self.issues.to_dict(),
            "counts": self.counts,
        }


@dataclass
class ValidationSummary:
    generated_at: str
    packages: list[str]
    total_packages: int
    total_locales: int
    total_issues: int
    untranslated_strings: int
    fuzzy_translations: int
    reports: list[ValidationReport]

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "packages": list(self.packages),
            "summary": {
                "totalPackages": self.total_packages,
                "totalLocales": self.total_locales,
                "totalIssues": self.total_issues,
                "untranslatedStrings": self.untranslated_strings,
                "fuzzyTranslations": self.fuzzy_translations,
            },
            "reports": [report.to_dict() for report in self.reports],
        }


@dataclass
class LocaleComparison:
    total_translations: int
    missing_from_pot: list[str]
    missing_from_locale: list[str]
    coverage_percentage: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTranslations": self.total_translations,
            "missingFromPot": list(self.missing_from_pot),
            "missingFromLocale": list(self.missing_from_locale),
            "coveragePercentage": self.coverage_percentage,
        }


@dataclass
class PotComparisonReport:
    generated_at: str
    template_strings: list[str]
    locales: dict[str, LocaleComparison]
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "generatedAt": self.generated_at,
            "potFile": {
                "totalStrings": len(self.template_strings),
                "strings": list(self.template_strings),
            },
            "locales": {
                locale: comparison.to_dict()
                for locale, comparison in self.locales.items()
            },
        }
        if self.error:
            data["error"] = self.error
        return data
