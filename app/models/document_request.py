"""Provider contract and the typed DocumentRequest model.

A host application hands the generator anything that satisfies
:class:`DocumentProvider`.  :class:`DocumentRequest` is the ready-made
implementation used by the CLI (loaded from a JSON request file) and by
callers that prefer a plain value object over a custom class.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class OutputFormat(str, Enum):
    DOCX = "docx"
    ODT  = "odt"
    PDF  = "pdf"


@runtime_checkable
class DocumentProvider(Protocol):
    def get_data(self) -> Any: ...

    def get_template_path(self) -> str | Path: ...

    def get_output_filename(self) -> str: ...

    def get_output_format(self) -> str: ...

    def get_temp_dir(self) -> str | Path: ...


class DocumentRequest(BaseModel):
    """A single generation request; satisfies :class:`DocumentProvider`."""

    data: dict[str, Any] = Field(default_factory=dict)
    """Placeholder values keyed by token text; ``${key}`` keys are accepted."""

    template_path: Path
    """DOCX template to fill; it is copied, never modified."""

    output_filename: str
    """Output file stem; sanitized before use."""

    output_format: OutputFormat = OutputFormat.DOCX
    """Format of the final document."""

    temp_dir: Path
    """Existing writable directory for scratch files and the output."""

    def get_data(self) -> dict[str, Any]:
        return self.data

    def get_template_path(self) -> Path:
        return self.template_path

    def get_output_filename(self) -> str:
        return self.output_filename

    def get_output_format(self) -> str:
        return self.output_format.value

    def get_temp_dir(self) -> Path:
        return self.temp_dir
