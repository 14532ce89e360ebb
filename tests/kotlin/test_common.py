# pylint: disable=missing-docstring

import unittest

from fhir_codegen.common import Identifier
from fhir_codegen.kotlin import common as kotlin_common


class TestStringLiteral(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual('""', kotlin_common.string_literal(""))

    def test_no_quotes(self) -> None:
        self.assertEqual('"class"', kotlin_common.string_literal("class"))

    def test_quotes_and_templates(self) -> None:
        self.assertEqual(
            '"a \\"b\\" \\$c"', kotlin_common.string_literal('a "b" $c')
        )

    def test_tab(self) -> None:
        self.assertEqual('"a\\tb"', kotlin_common.string_literal("a\tb"))


class TestEscapeIdentifier(unittest.TestCase):
    def test_keyword(self) -> None:
        self.assertEqual(
            "`object`", kotlin_common.escape_identifier(Identifier("object"))
        )

    def test_soft_keyword_is_not_escaped(self) -> None:
        self.assertEqual("data", kotlin_common.escape_identifier(Identifier("data")))

    def test_renamed_keyword(self) -> None:
        self.assertEqual(
            "class_", kotlin_common.escape_identifier(Identifier("class_"))
        )


if __name__ == "__main__":
    unittest.main()
