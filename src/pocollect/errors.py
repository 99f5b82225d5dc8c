class PoCollectError(Exception):
    """Base class for failures raised inside the collection pipeline."""


class MissingFileError(PoCollectError):
    """A catalog or template file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class ConversionError(PoCollectError):
    """A catalog could not be read or converted into translations."""


class ReportGenerationError(PoCollectError):
    """A catalog could not be classified into a validation report."""


class TemplateConfigurationError(PoCollectError):
    """The template has no strings to compare against."""
