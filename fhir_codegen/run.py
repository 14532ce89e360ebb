"""Encapsulate the entry point to different generators."""
import datetime
import pathlib
import textwrap
from typing import Sequence, TextIO

from icontract import require

from fhir_codegen import schema as fhir_schema
from fhir_codegen.settings import Settings


class Context:
    """Represent the context of a code generation."""

    @require(lambda output_dir: output_dir.exists() and output_dir.is_dir())
    def __init__(
        self,
        schema_path: pathlib.Path,
        schema: fhir_schema.Schema,
        settings: Settings,
        output_dir: pathlib.Path,
        generated_at: datetime.datetime,
    ) -> None:
        """Initialize with the given values."""
        self.schema_path = schema_path
        self.schema = schema
        self.settings = settings
        self.output_dir = output_dir
        self.generated_at = generated_at


# fmt: off
@require(
    lambda errors: all(
        len(error) > 0 and not error.startswith("\n")
        # This is necessary so that we do not have double bullet point.
        and not error.startswith("*") and not error.endswith("\n")
        for error in errors
    )
)
@require(lambda message: not message.endswith(":"))
@require(lambda message: not message.endswith("\n"))
@require(lambda message: not message.startswith("\n") and not message.startswith("*"))
# fmt: on
def write_error_report(message: str, errors: Sequence[str], stderr: TextIO) -> None:
    """
    Write the report (main ``message`` and details as ``errors``) to ``stderr``.

    This method helps us to have a unified way of showing errors.
    """
    stderr.write(f"{message}:\n")
    for error in errors:
        indented = textwrap.indent(error, "  ")
        indented = "* " + indented[2:]
        stderr.write(f"{indented}\n")
