"""Generate Kotlin data-model types based on the schema."""
from typing import TextIO

from fhir_codegen import emission, run
from fhir_codegen.common import error_message
from fhir_codegen.kotlin import rendering as kotlin_rendering


def execute(context: run.Context, stdout: TextIO, stderr: TextIO) -> int:
    """Generate the code."""
    # region Emit

    units, errors = emission.emit(
        schema=context.schema,
        settings=context.settings,
        generated_at=context.generated_at,
    )

    if errors is not None:
        run.write_error_report(
            message=f"Failed to emit the declarations based on {context.schema_path}",
            errors=[error_message(error) for error in errors],
            stderr=stderr,
        )
        return 1

    assert units is not None

    verified_units, errors = kotlin_rendering.verify(units)
    if errors is not None:
        run.write_error_report(
            message=f"Failed to verify the declarations for generation of Kotlin code "
            f"based on {context.schema_path}",
            errors=[error_message(error) for error in errors],
            stderr=stderr,
        )
        return 1

    assert verified_units is not None

    # endregion

    # region Write

    for unit in verified_units:
        kotlin_file = kotlin_rendering.render_unit(unit)

        pth = context.output_dir / kotlin_file.path
        try:
            pth.parent.mkdir(exist_ok=True, parents=True)
            pth.write_text(kotlin_file.content, encoding="utf-8")
        except Exception as exception:
            run.write_error_report(
                message=f"Failed to write the Kotlin unit {unit.name} to {pth}",
                errors=[str(exception)],
                stderr=stderr,
            )
            return 1

    # endregion

    stdout.write(f"Code generated to: {context.output_dir}\n")
    return 0
