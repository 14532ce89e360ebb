"""Provide common functions shared among different Kotlin rendering modules."""
import pathlib
from typing import List

from icontract import ensure, require

from fhir_codegen.common import Identifier, Stripped

#: Hard keywords of Kotlin which can not be used as identifiers without escaping
KEYWORDS = frozenset(
    [
        "as",
        "break",
        "class",
        "continue",
        "do",
        "else",
        "false",
        "for",
        "fun",
        "if",
        "in",
        "interface",
        "is",
        "null",
        "object",
        "package",
        "return",
        "super",
        "this",
        "throw",
        "true",
        "try",
        "typealias",
        "typeof",
        "val",
        "var",
        "when",
        "while",
    ]
)

#: Annotation which carries the wire name of a renamed property
SERIALIZED_NAME = "com.google.gson.annotations.SerializedName"


def escape_identifier(identifier: Identifier) -> Stripped:
    """
    Wrap the ``identifier`` in backticks if it is a Kotlin keyword.

    >>> escape_identifier(Identifier("something"))
    'something'

    >>> escape_identifier(Identifier("class"))
    '`class`'
    """
    if identifier in KEYWORDS:
        return Stripped(f"`{identifier}`")

    return Stripped(identifier)


@ensure(lambda result: result.startswith('"'))
@ensure(lambda result: result.endswith('"'))
def string_literal(text: str) -> Stripped:
    """
    Generate a Kotlin string literal from the ``text``.

    >>> string_literal('say "hi"')
    '"say \\\\"hi\\\\""'

    >>> string_literal("$value")
    '"\\\\$value"'
    """
    escaped = []  # type: List[str]

    for character in text:
        if character == "\t":
            escaped.append("\\t")
        elif character == "\b":
            escaped.append("\\b")
        elif character == "\n":
            escaped.append("\\n")
        elif character == "\r":
            escaped.append("\\r")
        elif character == "'":
            escaped.append("\\'")
        elif character == '"':
            escaped.append('\\"')
        elif character == "\\":
            escaped.append("\\\\")
        elif character == "$":
            escaped.append("\\$")
        else:
            escaped.append(character)

    return Stripped('"{}"'.format("".join(escaped)))


INDENT = "    "


class KotlinFile:
    """Representation of a Kotlin source file."""

    # fmt: off
    @require(lambda path: not path.is_absolute())
    @require(lambda path: path.suffix == ".kt")
    @require(lambda content: content.endswith('\n'), "Trailing newline mandatory for valid end-of-files")
    # fmt: on
    def __init__(self, path: pathlib.PurePosixPath, content: str) -> None:
        """Initialize with the given values."""
        self.path = path
        self.content = content
