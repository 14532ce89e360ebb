"""Generate Kotlin data-model types based on a FHIR schema."""

import argparse
import datetime
import enum
import pathlib
import sys
from typing import Optional, TextIO

import fhir_codegen
import fhir_codegen.kotlin.main as kotlin_main
from fhir_codegen import run, schema as fhir_schema, settings as fhir_settings
from fhir_codegen.common import assert_never

assert fhir_codegen.__doc__ == __doc__


class Target(enum.Enum):
    """List available target implementations."""

    KOTLIN = "kotlin"


class Parameters:
    """Represent the program parameters."""

    def __init__(
        self,
        schema_path: pathlib.Path,
        settings_path: pathlib.Path,
        target: Target,
        output_dir: pathlib.Path,
        generated_at: Optional[datetime.datetime] = None,
    ) -> None:
        """
        Initialize with the given values.

        If ``generated_at`` is not given, the current time is used.
        """
        self.schema_path = schema_path
        self.settings_path = settings_path
        self.target = target
        self.output_dir = output_dir
        self.generated_at = generated_at


def execute(params: Parameters, stdout: TextIO, stderr: TextIO) -> int:
    """Run the program."""
    # region Basic checks
    if not params.schema_path.exists():
        stderr.write(f"The --schema does not exist: {params.schema_path}\n")
        return 1

    if not params.schema_path.is_file():
        stderr.write(f"The --schema does not point to a file: {params.schema_path}\n")
        return 1

    if not params.settings_path.exists():
        stderr.write(f"The --settings does not exist: {params.settings_path}\n")
        return 1

    if not params.settings_path.is_file():
        stderr.write(
            f"The --settings does not point to a file: {params.settings_path}\n"
        )
        return 1

    if not params.output_dir.exists():
        params.output_dir.mkdir(parents=True, exist_ok=True)
    else:
        if not params.output_dir.is_dir():
            stderr.write(
                f"The --output_dir does not point to a directory: "
                f"{params.output_dir}\n"
            )
            return 1

    # endregion

    # region Load

    settings, errors = fhir_settings.load(params.settings_path)
    if errors is not None:
        run.write_error_report(
            message=f"Failed to load the settings from {params.settings_path}",
            errors=errors,
            stderr=stderr,
        )
        return 1

    assert settings is not None

    schema, errors = fhir_schema.load(params.schema_path)
    if errors is not None:
        run.write_error_report(
            message=f"Failed to load the schema from {params.schema_path}",
            errors=errors,
            stderr=stderr,
        )
        return 1

    assert schema is not None

    # endregion

    # region Dispatch

    run_context = run.Context(
        schema_path=params.schema_path,
        schema=schema,
        settings=settings,
        output_dir=params.output_dir,
        generated_at=(
            params.generated_at
            if params.generated_at is not None
            else datetime.datetime.now().replace(microsecond=0)
        ),
    )

    if params.target is Target.KOTLIN:
        return kotlin_main.execute(context=run_context, stdout=stdout, stderr=stderr)

    else:
        assert_never(params.target)

    # endregion

    raise AssertionError("Should not have gotten here")


def main(prog: str) -> int:
    """
    Execute the main routine.

    :param prog: name of the program to be displayed in the help
    :return: exit code
    """
    parser = argparse.ArgumentParser(prog=prog, description=__doc__)
    parser.add_argument("--schema", help="path to the schema as JSON", required=True)
    parser.add_argument(
        "--settings",
        help="path to the settings (policy tables) as JSON",
        required=True,
    )
    parser.add_argument(
        "--output_dir", help="path to the generated code", required=True
    )
    parser.add_argument(
        "--target",
        help="target language",
        default=Target.KOTLIN.value,
        choices=[literal.value for literal in Target],
    )
    parser.add_argument(
        "--version", help="show the current version and exit", action="store_true"
    )

    # NOTE:
    # The module ``argparse`` is not flexible enough to understand special options such
    # as ``--version`` so we manually hard-wire.
    if "--version" in sys.argv and "--help" not in sys.argv:
        print(fhir_codegen.__version__)
        return 0

    args = parser.parse_args()

    target_to_str = {literal.value: literal for literal in Target}

    params = Parameters(
        schema_path=pathlib.Path(args.schema),
        settings_path=pathlib.Path(args.settings),
        target=target_to_str[args.target],
        output_dir=pathlib.Path(args.output_dir),
    )

    return execute(params=params, stdout=sys.stdout, stderr=sys.stderr)


def entry_point() -> int:
    """Provide an entry point for a console script."""
    return main(prog="fhir-codegen")


if __name__ == "__main__":
    sys.exit(main(prog="fhir-codegen"))
