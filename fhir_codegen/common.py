"""Provide common functions and types for the code generation."""
import io
import re
import textwrap
from typing import Optional, List, cast, NoReturn

from icontract import require, DBC


class Rstripped(str):
    """
    Represent a block of text without trailing whitespace.

    The block can be both single-line or multi-line.
    """

    @require(
        lambda block: not block.endswith("\n")
        and not block.endswith(" ")
        and not block.endswith("\t")
    )
    def __new__(cls, block: str) -> "Rstripped":
        return cast(Rstripped, block)


def is_stripped(text: str) -> bool:
    """Check that the ``text`` does not have leading and trailing whitespace."""
    return (
        not text.startswith("\n")
        and not text.startswith(" ")
        and not text.startswith("\t")
    ) and (
        not text.endswith("\n") and not text.endswith(" ") and not text.endswith("\t")
    )


def is_single_line(text: str) -> bool:
    """
    Check that the ``text`` contains no line break of any kind.

    >>> is_single_line("4.0.1")
    True
    >>> is_single_line("4.0.1\\r")
    False
    """
    return len(text) == 0 or text.splitlines() == [text]


class Stripped(Rstripped):
    """
    Represent a block of text without leading and trailing whitespace.

    The block of text can be both single-line and multi-line.
    """

    @require(lambda block: is_stripped(block))
    def __new__(cls, block: str) -> "Stripped":
        return cast(Stripped, block)


# noinspection RegExpSimplifiable
IDENTIFIER_RE = re.compile(r"[a-zA-Z_][a-zA-Z_0-9]*")


class Identifier(DBC, Stripped):
    """Represent an identifier."""

    @require(lambda value: IDENTIFIER_RE.fullmatch(value))
    def __new__(cls, value: str) -> "Identifier":
        return cast(Identifier, value)


class Error:
    """
    Represent an unexpected input.

    For example, the schema can be a valid JSON document, but a property refers to
    a type which neither the schema nor the settings know about.
    """

    def __init__(
        self,
        message: str,
        underlying: Optional[List["Error"]] = None,
    ) -> None:
        self.message = message
        self.underlying = underlying

    def __repr__(self) -> str:
        return f"Error(message={self.message!r}, underlying={self.underlying!r})"


def error_message(error: Error) -> str:
    """Render the ``error`` together with its underlying errors as indented text."""
    if error.underlying is None or len(error.underlying) == 0:
        return error.message

    writer = io.StringIO()
    writer.write(f"{error.message}\n")
    for i, underlying_error in enumerate(error.underlying):
        if i > 0:
            writer.write("\n")
        writer.write(textwrap.indent(error_message(underlying_error), "  "))

    return writer.getvalue()


def assert_never(value: NoReturn) -> NoReturn:
    """
    Signal to mypy to perform an exhaustive matching.

    Please see the following page for more details:
    https://hakibenita.com/python-mypy-exhaustive-checking
    """
    assert False, f"Unhandled value: {value} ({type(value).__name__})"


def indent_but_first_line(text: str, indention: str) -> str:
    """
    Indent all but the first of the given ``text`` by ``indention``.

    For example, this helps you insert indented blocks into formatted string literals.
    """
    indented_lines = []  # type: List[str]
    for i, line in enumerate(text.splitlines()):
        if i == 0:
            indented_lines.append(line)
        else:
            if len(line) > 0:
                indented_lines.append(indention + line)
            else:
                indented_lines.append(line)

    return "\n".join(indented_lines)
