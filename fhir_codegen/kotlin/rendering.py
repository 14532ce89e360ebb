"""Render the language-independent declarations as Kotlin code."""
import io
import pathlib
from typing import List, MutableMapping, Optional, Sequence, Tuple

from icontract import ensure

from fhir_codegen.common import (
    Error,
    Stripped,
    assert_never,
    indent_but_first_line,
)
from fhir_codegen.declaration import (
    Declaration,
    DefaultConstruction,
    EmptyList,
    Expression,
    FieldDecl,
    Initializer,
    Null,
    OutputUnit,
    TypeRef,
)
from fhir_codegen.kotlin import common as kotlin_common
from fhir_codegen.kotlin.common import INDENT as I


def render_type(type_ref: TypeRef) -> Stripped:
    """Render the Kotlin type of a field."""
    name = kotlin_common.escape_identifier(type_ref.name)

    if type_ref.is_list:
        return Stripped(f"List<{name}>")

    if type_ref.is_nullable:
        return Stripped(f"{name}?")

    return name


def render_initializer(initializer: Initializer, type_ref: TypeRef) -> Stripped:
    """Render the initial value of a field of the type ``type_ref``."""
    if isinstance(initializer, EmptyList):
        name = kotlin_common.escape_identifier(type_ref.name)
        return Stripped(f"mutableListOf<{name}>()")

    elif isinstance(initializer, Null):
        return Stripped("null")

    elif isinstance(initializer, DefaultConstruction):
        return Stripped(f"{kotlin_common.escape_identifier(initializer.type_name)}()")

    elif isinstance(initializer, Expression):
        return Stripped(initializer.text.strip())

    else:
        assert_never(initializer)

    raise AssertionError("Should not have gotten here")


@ensure(lambda result: result.startswith("/**"))
@ensure(lambda result: result.endswith("*/"))
@ensure(lambda result: result.count("/*") == 1 and result.count("*/") == 1)
def render_kdoc(text: str) -> Stripped:
    """
    Render the ``text`` as a KDoc comment.

    Kotlin block comments nest, so both the opening and the closing of a comment
    inside the ``text`` are neutralized.
    """
    writer = io.StringIO()
    writer.write("/**\n")
    for line in text.replace("*/", "*&#47;").replace("/*", "/&#42;").splitlines():
        if len(line.strip()) == 0:
            writer.write(" *\n")
        else:
            writer.write(f" * {line.rstrip()}\n")
    writer.write(" */")

    return Stripped(writer.getvalue())


def render_field(field: FieldDecl) -> Stripped:
    """Render the field as a Kotlin property."""
    blocks = []  # type: List[str]

    if field.doc is not None and len(field.doc.strip()) > 0:
        blocks.append(render_kdoc(field.doc))

    if field.alias is not None:
        blocks.append(f"@SerializedName({kotlin_common.string_literal(field.alias)})")

    keyword = "var" if field.mutable else "val"
    name = kotlin_common.escape_identifier(field.name)
    prop_type = render_type(field.type_ref)

    if field.initializer is None:
        blocks.append(f"{keyword} {name}: {prop_type}")
    else:
        initializer = render_initializer(field.initializer, field.type_ref)
        blocks.append(f"{keyword} {name}: {prop_type} = {initializer}")

    return Stripped("\n".join(blocks))


def _class_doc(declaration: Declaration) -> Optional[str]:
    """Join the short and the long documentation of the class, if any."""
    parts = [
        doc
        for doc in (declaration.short_doc, declaration.long_doc)
        if doc is not None and len(doc.strip()) > 0
    ]

    if len(parts) == 0:
        return None

    return "\n\n".join(parts)


def render_declaration(declaration: Declaration) -> Stripped:
    """Render the declaration as an open Kotlin class."""
    writer = io.StringIO()

    doc = _class_doc(declaration)
    if doc is not None:
        writer.write(render_kdoc(doc))
        writer.write("\n")

    writer.write(f"open class {kotlin_common.escape_identifier(declaration.name)}")

    if declaration.superclass is not None:
        superclass = kotlin_common.escape_identifier(declaration.superclass)
        writer.write(f" : {superclass}()")

    if len(declaration.fields) == 0:
        return Stripped(writer.getvalue())

    writer.write(" {\n")
    for i, field in enumerate(declaration.fields):
        if i > 0:
            writer.write("\n\n")
        writer.write(I)
        writer.write(indent_but_first_line(render_field(field), I))

    writer.write("\n}")

    return Stripped(writer.getvalue())


def _unit_path(unit: OutputUnit) -> pathlib.PurePosixPath:
    """Determine the path of the unit relative to the output directory."""
    path = pathlib.PurePosixPath(unit.subdirectory or ".")
    for part in unit.package.split("."):
        path = path / part

    return path / f"{unit.name}.kt"


@ensure(lambda result: (result[0] is None) ^ (result[1] is None))
def verify(
    units: Sequence[OutputUnit],
) -> Tuple[Optional[Sequence[OutputUnit]], Optional[List[Error]]]:
    """
    Verify that Kotlin code can be generated from the ``units``.

    The classes of a package must not collide, and neither must the files.
    """
    errors = []  # type: List[Error]

    observed_classes = dict()  # type: MutableMapping[Tuple[str, str], OutputUnit]
    observed_paths = dict()  # type: MutableMapping[pathlib.PurePosixPath, OutputUnit]

    for unit in units:
        path = _unit_path(unit)
        other_unit = observed_paths.get(path, None)
        if other_unit is not None:
            errors.append(
                Error(
                    f"The unit {unit.name!r} would be written to the same file "
                    f"{path.as_posix()} as another unit"
                )
            )
        else:
            observed_paths[path] = unit

        for declaration in unit.declarations:
            key = (unit.package, declaration.name)
            other_unit = observed_classes.get(key, None)
            if other_unit is not None:
                errors.append(
                    Error(
                        f"The Kotlin class {declaration.name!r} in the unit "
                        f"{unit.name!r} collides with the class of the same name "
                        f"in the unit {other_unit.name!r} "
                        f"of the package {unit.package!r}"
                    )
                )
            else:
                observed_classes[key] = unit

    if len(errors) > 0:
        return None, errors

    return units, None


def render_unit(unit: OutputUnit) -> kotlin_common.KotlinFile:
    """Render the whole unit as a Kotlin file."""
    writer = io.StringIO()

    if unit.header is not None:
        for line in unit.header.splitlines():
            writer.write(f"// {line}".rstrip())
            writer.write("\n")
        writer.write("\n")

    writer.write(f"package {unit.package}\n")

    if any(
        field.alias is not None
        for declaration in unit.declarations
        for field in declaration.fields
    ):
        writer.write(f"\nimport {kotlin_common.SERIALIZED_NAME}\n")

    for declaration in unit.declarations:
        writer.write("\n")
        writer.write(render_declaration(declaration))
        writer.write("\n")

    return kotlin_common.KotlinFile(path=_unit_path(unit), content=writer.getvalue())
