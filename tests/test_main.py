# pylint: disable=missing-docstring

import contextlib
import datetime
import io
import json
import os
import pathlib
import tempfile
import unittest
from typing import Any, List, Tuple

import fhir_codegen.main

import tests.common

#: Fixed time of generation so that the headers of the golden files are stable
GENERATED_AT = datetime.datetime(2026, 10, 18, 9, 30)


def _relative_kotlin_paths(directory: pathlib.Path) -> List[pathlib.Path]:
    return sorted(pth.relative_to(directory) for pth in directory.glob("**/*.kt"))


def _execute(
    schema_path: pathlib.Path, settings_path: pathlib.Path, output_dir: pathlib.Path
) -> Tuple[int, str, str]:
    params = fhir_codegen.main.Parameters(
        schema_path=schema_path,
        settings_path=settings_path,
        target=fhir_codegen.main.Target.KOTLIN,
        output_dir=output_dir,
        generated_at=GENERATED_AT,
    )

    stdout = io.StringIO()
    stderr = io.StringIO()

    return_code = fhir_codegen.main.execute(
        params=params, stdout=stdout, stderr=stderr
    )

    return return_code, stdout.getvalue(), stderr.getvalue()


class Test_against_recorded(unittest.TestCase):
    _REPO_DIR = pathlib.Path(os.path.realpath(__file__)).parent.parent
    PARENT_CASE_DIR = _REPO_DIR / "test_data" / "test_main"

    def test_cases(self) -> None:
        assert (
            Test_against_recorded.PARENT_CASE_DIR.exists()
            and Test_against_recorded.PARENT_CASE_DIR.is_dir()
        ), f"{Test_against_recorded.PARENT_CASE_DIR=}"

        case_dirs = sorted(
            pth
            for pth in Test_against_recorded.PARENT_CASE_DIR.iterdir()
            if pth.is_dir()
        )
        self.assertGreater(len(case_dirs), 0)

        for case_dir in case_dirs:
            schema_path = case_dir / "input" / "schema.json"
            settings_path = case_dir / "input" / "settings.json"
            assert schema_path.exists(), schema_path
            assert settings_path.exists(), settings_path

            expected_output_dir = case_dir / "expected_output"

            with contextlib.ExitStack() as exit_stack:
                if tests.common.RERECORD:
                    output_dir = expected_output_dir
                    expected_output_dir.mkdir(exist_ok=True, parents=True)
                else:
                    assert (
                        expected_output_dir.exists() and expected_output_dir.is_dir()
                    ), expected_output_dir

                    # pylint: disable=consider-using-with
                    tmp_dir = tempfile.TemporaryDirectory()
                    exit_stack.push(tmp_dir)
                    output_dir = pathlib.Path(tmp_dir.name)

                return_code, stdout, stderr = _execute(
                    schema_path=schema_path,
                    settings_path=settings_path,
                    output_dir=output_dir,
                )

                if stderr != "":
                    raise AssertionError(
                        f"Expected no stderr on valid schemas, but got:\n{stderr}"
                    )

                self.assertEqual(
                    0, return_code, "Expected 0 return code on valid schemas"
                )

                stdout_pth = expected_output_dir / "stdout.txt"
                normalized_stdout = stdout.replace(str(output_dir), "<output dir>")

                if tests.common.RERECORD:
                    stdout_pth.write_text(normalized_stdout, encoding="utf-8")
                    continue

                self.assertEqual(
                    stdout_pth.read_text(encoding="utf-8"),
                    normalized_stdout,
                    stdout_pth,
                )

                self.assertListEqual(
                    _relative_kotlin_paths(expected_output_dir),
                    _relative_kotlin_paths(output_dir),
                )

                for relevant_rel_pth in _relative_kotlin_paths(expected_output_dir):
                    expected_pth = expected_output_dir / relevant_rel_pth
                    output_pth = output_dir / relevant_rel_pth

                    self.assertEqual(
                        expected_pth.read_text(encoding="utf-8"),
                        output_pth.read_text(encoding="utf-8"),
                        f"The files {expected_pth} and {output_pth} do not match.",
                    )


class Test_failures(unittest.TestCase):
    @staticmethod
    def _write(directory: pathlib.Path, name: str, jsonable: Any) -> pathlib.Path:
        pth = directory / name
        pth.write_text(json.dumps(jsonable), encoding="utf-8")
        return pth

    def test_missing_schema(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            directory = pathlib.Path(tmp_dir)
            settings_path = self._write(
                directory, "settings.json", {"package": "io.articulus.fhir.model"}
            )

            return_code, stdout, stderr = _execute(
                schema_path=directory / "missing.json",
                settings_path=settings_path,
                output_dir=directory / "output",
            )

        self.assertEqual(1, return_code)
        self.assertEqual("", stdout)
        self.assertEqual(
            f"The --schema does not exist: {directory / 'missing.json'}\n", stderr
        )

    def test_invalid_settings(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            directory = pathlib.Path(tmp_dir)
            schema_path = self._write(
                directory, "schema.json", {"version": "4.0.1", "profiles": []}
            )
            settings_path = self._write(directory, "settings.json", {})

            return_code, _, stderr = _execute(
                schema_path=schema_path,
                settings_path=settings_path,
                output_dir=directory / "output",
            )

        self.assertEqual(1, return_code)
        self.assertEqual(
            f"Failed to load the settings from {settings_path}:\n"
            f"* $.package: Expected a package identifier, but got None\n",
            stderr,
        )

    def test_multi_line_version_is_reported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            directory = pathlib.Path(tmp_dir)
            schema_path = self._write(
                directory, "schema.json", {"version": "4.0.1\n", "profiles": []}
            )
            settings_path = self._write(
                directory, "settings.json", {"package": "io.articulus.fhir.model"}
            )

            return_code, stdout, stderr = _execute(
                schema_path=schema_path,
                settings_path=settings_path,
                output_dir=directory / "output",
            )

        self.assertEqual(1, return_code)
        self.assertEqual("", stdout)
        self.assertEqual(
            f"Failed to load the schema from {schema_path}:\n"
            f"* $.version: Expected a single-line version, but got '4.0.1\\n'\n",
            stderr,
        )

    def test_unknown_type(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            directory = pathlib.Path(tmp_dir)
            schema_path = self._write(
                directory,
                "schema.json",
                {
                    "version": "4.0.1",
                    "profiles": [
                        {
                            "name": "Patient",
                            "classes": [
                                {
                                    "name": "Patient",
                                    "properties": [
                                        {"name": "photo", "type": "Attachment"}
                                    ],
                                }
                            ],
                        }
                    ],
                },
            )
            settings_path = self._write(
                directory, "settings.json", {"package": "io.articulus.fhir.model"}
            )
            output_dir = directory / "output"

            return_code, stdout, stderr = _execute(
                schema_path=schema_path,
                settings_path=settings_path,
                output_dir=output_dir,
            )

            self.assertListEqual([], _relative_kotlin_paths(output_dir))

        self.assertEqual(1, return_code)
        self.assertEqual("", stdout)
        self.assertEqual(
            f"Failed to emit the declarations based on {schema_path}:\n"
            f"* Failed to emit the declaration of the class 'Patient'\n"
            f"    The property 'photo' of the class 'Patient' refers to "
            f"the type 'Attachment' which is neither a class of the schema "
            f"nor listed in the type map\n",
            stderr,
        )


if __name__ == "__main__":
    unittest.main()
