"""Provide the language-independent declarations which the renderers consume."""
from typing import Final, Optional, Sequence, Union

from icontract import require

from fhir_codegen.common import Identifier, Stripped


class TypeRef:
    """Reference an emitted type, possibly as a sequence or as nullable."""

    #: Name of the emitted (item) type
    name: Final[Identifier]

    #: If set, the field is an ordered sequence of ``name``
    is_list: Final[bool]

    #: If set, the field can hold the null sentinel
    is_nullable: Final[bool]

    @require(
        lambda is_list, is_nullable: not (is_list and is_nullable),
        "Sequences are never nullable",
    )
    def __init__(
        self, name: Identifier, is_list: bool = False, is_nullable: bool = False
    ) -> None:
        """Initialize with the given values."""
        self.name = name
        self.is_list = is_list
        self.is_nullable = is_nullable

    def __repr__(self) -> str:
        text = f"List<{self.name}>" if self.is_list else self.name
        return f"TypeRef({text}{'?' if self.is_nullable else ''})"


class EmptyList:
    """Initialize a sequence field with an empty sequence."""

    def __repr__(self) -> str:
        return "EmptyList()"


class Null:
    """Initialize a nullable field with the null sentinel."""

    def __repr__(self) -> str:
        return "Null()"


class DefaultConstruction:
    """Initialize a field by calling the constructor of its type without arguments."""

    def __init__(self, type_name: Identifier) -> None:
        """Initialize with the given values."""
        self.type_name = type_name

    def __repr__(self) -> str:
        return f"DefaultConstruction({self.type_name!r})"


class Expression:
    """Initialize a field with a configured expression of the target language."""

    @require(lambda text: len(text.strip()) > 0)
    def __init__(self, text: str) -> None:
        """Initialize with the given values."""
        self.text = text

    def __repr__(self) -> str:
        return f"Expression({self.text!r})"


Initializer = Union[EmptyList, Null, DefaultConstruction, Expression]


class FieldDecl:
    """Represent an emitted field of a declaration."""

    #: Emitted name of the field
    name: Final[Identifier]

    #: Emitted type of the field
    type_ref: Final[TypeRef]

    #: Initial value of the field, if any
    initializer: Final[Optional[Initializer]]

    #: If set, the field can be re-assigned
    mutable: Final[bool]

    #: Name used on the wire if it differs from ``name``
    alias: Final[Optional[str]]

    #: Documentation attached to the field, if any
    doc: Final[Optional[str]]

    # fmt: off
    @require(
        lambda name, alias: alias is None or alias != name,
        "Alias only for renamed fields"
    )
    @require(
        lambda type_ref, initializer:
        not isinstance(initializer, EmptyList) or type_ref.is_list
    )
    @require(
        lambda type_ref, initializer:
        not isinstance(initializer, Null) or type_ref.is_nullable
    )
    # fmt: on
    def __init__(
        self,
        name: Identifier,
        type_ref: TypeRef,
        initializer: Optional[Initializer],
        mutable: bool,
        alias: Optional[str],
        doc: Optional[str],
    ) -> None:
        """Initialize with the given values."""
        self.name = name
        self.type_ref = type_ref
        self.initializer = initializer
        self.mutable = mutable
        self.alias = alias
        self.doc = doc

    def __repr__(self) -> str:
        return (
            f"FieldDecl(name={self.name!r}, type_ref={self.type_ref!r}, "
            f"initializer={self.initializer!r}, mutable={self.mutable!r}, "
            f"alias={self.alias!r}, doc={self.doc!r})"
        )


class Declaration:
    """
    Represent the emitted type declaration of a single class.

    The declarations are always open for inheritance. The constructor takes no
    arguments and the constructor of the superclass is called without arguments
    as well, so the default-initialized state of the parent is inherited as-is.
    """

    #: Name of the declared type
    name: Final[Identifier]

    #: Short documentation, if any
    short_doc: Final[Optional[str]]

    #: Long documentation, if any
    long_doc: Final[Optional[str]]

    #: Name of the type which this one extends, if any
    superclass: Final[Optional[Identifier]]

    #: Fields in the order of emission
    fields: Final[Sequence[FieldDecl]]

    # fmt: off
    @require(
        lambda fields: (
            names := [field.name for field in fields],
            len(names) == len(set(names))
        )[1],
        "Field names unique"
    )
    # fmt: on
    def __init__(
        self,
        name: Identifier,
        short_doc: Optional[str],
        long_doc: Optional[str],
        superclass: Optional[Identifier],
        fields: Sequence[FieldDecl],
    ) -> None:
        """Initialize with the given values."""
        self.name = name
        self.short_doc = short_doc
        self.long_doc = long_doc
        self.superclass = superclass
        self.fields = fields

    def __repr__(self) -> str:
        return f"Declaration(name={self.name!r}, superclass={self.superclass!r})"


class OutputUnit:
    """Group the declarations which are written together in one unit."""

    #: Package of the declarations
    package: Final[str]

    #: Name of the unit, *e.g.*, the file name without the extension
    name: Final[Identifier]

    #: Header text, if any
    header: Final[Optional[Stripped]]

    #: Declarations in the order of emission
    declarations: Final[Sequence[Declaration]]

    #: Directory relative to the output directory; ``None`` is the output directory
    subdirectory: Final[Optional[str]]

    def __init__(
        self,
        package: str,
        name: Identifier,
        header: Optional[Stripped],
        declarations: Sequence[Declaration],
        subdirectory: Optional[str] = None,
    ) -> None:
        """Initialize with the given values."""
        self.package = package
        self.name = name
        self.header = header
        self.declarations = declarations
        self.subdirectory = subdirectory

    def __repr__(self) -> str:
        return f"OutputUnit(package={self.package!r}, name={self.name!r})"
