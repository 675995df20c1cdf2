"""Generation-level error taxonomy.

Every error that aborts a document generation derives from
:class:`DocGenError` and carries a stable machine ``code`` plus a
human-readable message.  Per-field problems (a bad date, a missing image)
never raise; resolvers degrade them locally.
"""


class DocGenError(Exception):
    """Base class for errors surfaced to the caller of a generation."""

    code: str = "docgen_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"ERROR: {self.message}"


class TemplateNotFound(DocGenError):
    code = "template_not_found"


class InvalidInputData(DocGenError):
    code = "invalid_data"


class TempDirUnavailable(DocGenError):
    code = "invalid_temp_dir"


class CopyFailed(DocGenError):
    code = "copy_failed"


class TemplateLoadFailed(DocGenError):
    code = "template_load_failed"


class AssetGenerationFailed(DocGenError):
    code = "asset_generation_failed"


class InjectionFailed(DocGenError):
    code = "processing_failed"


class ConversionFailed(DocGenError):
    code = "conversion_failed"
