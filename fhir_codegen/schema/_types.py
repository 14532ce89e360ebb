"""Provide the types of the in-memory schema model."""
import pathlib
from typing import Final, Mapping, Optional, Sequence, List, Iterator

import sortedcontainers
from icontract import require, ensure, DBC

from fhir_codegen.common import Identifier

_MODULE_NAME = pathlib.Path(__file__).parent.name


class SchemaProperty:
    """Represent a property of a schema class."""

    #: Name of the property as it appears in the FHIR schema
    original_name: Final[str]

    #: Name of the type, either a scalar schema type or a schema class
    declared_type: Final[str]

    #: Lower bound of the cardinality
    min_occurs: Final[int]

    #: Upper bound of the cardinality; ``None`` stands for unbounded
    max_occurs: Final[Optional[int]]

    #: Short description of the property
    short_doc: Final[str]

    @require(lambda original_name: len(original_name) > 0)
    @require(lambda declared_type: len(declared_type) > 0)
    @require(lambda min_occurs: min_occurs >= 0)
    @require(lambda max_occurs: max_occurs is None or max_occurs >= 1)
    def __init__(
        self,
        original_name: str,
        declared_type: str,
        min_occurs: int,
        max_occurs: Optional[int],
        short_doc: str,
    ) -> None:
        """Initialize with the given values."""
        self.original_name = original_name
        self.declared_type = declared_type
        self.min_occurs = min_occurs
        self.max_occurs = max_occurs
        self.short_doc = short_doc

    def is_list(self) -> bool:
        """Check whether the property holds an unbounded sequence of values."""
        return self.max_occurs is None

    def is_optional(self) -> bool:
        """Check whether the property can be omitted."""
        return self.min_occurs == 0

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        return (
            f"<{_MODULE_NAME}.{self.__class__.__name__} {self.original_name} "
            f"at 0x{id(self):x}>"
        )


class SchemaClass:
    """Represent a class of the schema which is emitted as one type declaration."""

    #: Name of the class, unique within the schema
    name: Final[Identifier]

    #: Short description of the class
    short_doc: Final[str]

    #: Formal (long) description of the class
    long_doc: Final[str]

    #: Name of the parent class, if any
    superclass_name: Final[Optional[Identifier]]

    #: If not set, the class is scaffolding which is not emitted
    selected: Final[bool]

    _properties: sortedcontainers.SortedDict

    def __init__(
        self,
        name: Identifier,
        short_doc: str,
        long_doc: str,
        superclass_name: Optional[Identifier],
        properties: Mapping[str, SchemaProperty],
        selected: bool = True,
    ) -> None:
        """Initialize with the given values."""
        self.name = name
        self.short_doc = short_doc
        self.long_doc = long_doc
        self.superclass_name = superclass_name
        self.selected = selected

        self._properties = sortedcontainers.SortedDict(properties)

    @property
    def properties(self) -> Mapping[str, SchemaProperty]:
        """Map property keys to the properties, iterated in the order of the keys."""
        return self._properties

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        return f"<{_MODULE_NAME}.{self.__class__.__name__} {self.name} at 0x{id(self):x}>"


class Profile:
    """Group the classes which are written to a single output unit."""

    #: Name of the profile
    name: Final[str]

    #: Name of the output unit
    target_name: Final[Identifier]

    #: If not set, the whole profile is skipped
    selected: Final[bool]

    #: Classes of the profile in the order of the FHIR schema
    classes: Final[Sequence[SchemaClass]]

    def __init__(
        self,
        name: str,
        target_name: Identifier,
        classes: Sequence[SchemaClass],
        selected: bool = True,
    ) -> None:
        """Initialize with the given values."""
        self.name = name
        self.target_name = target_name
        self.classes = classes
        self.selected = selected

    def __repr__(self) -> str:
        """Represent the instance as a string for easier debugging."""
        return f"<{_MODULE_NAME}.{self.__class__.__name__} {self.name} at 0x{id(self):x}>"


class Schema(DBC):
    """Represent one revision of the FHIR schema."""

    #: Version of the FHIR standard, *e.g.*, ``4.0.1``
    version: Final[str]

    #: Profiles in the order of the FHIR schema
    profiles: Final[Sequence[Profile]]

    #: All the classes of all the profiles, in the order of the profiles
    classes: Final[Sequence[SchemaClass]]

    _name_to_class: Final[Mapping[Identifier, SchemaClass]]

    # fmt: off
    @require(
        lambda profiles: (
            names := [cls.name for profile in profiles for cls in profile.classes],
            len(names) == len(set(names))
        )[1],
        "Class names unique across all the profiles"
    )
    @ensure(
        lambda self:
        all(
            self.find_class(cls.name) is cls
            for cls in self.classes
        )
    )
    # fmt: on
    def __init__(self, version: str, profiles: Sequence[Profile]) -> None:
        """Initialize with the given values and map the classes by their names."""
        self.version = version
        self.profiles = profiles

        classes = []  # type: List[SchemaClass]
        for profile in profiles:
            classes.extend(profile.classes)

        self.classes = classes
        self._name_to_class = {cls.name: cls for cls in classes}

    def find_class(self, name: str) -> Optional[SchemaClass]:
        """Find the class with the given ``name``, if it exists."""
        return self._name_to_class.get(name, None)

    def find_superclass(self, cls: SchemaClass) -> Optional[SchemaClass]:
        """
        Resolve the parent of the ``cls``.

        A ``superclass_name`` which can not be found is resolved to ``None``,
        *i.e.*, the class is treated as a root type.
        """
        if cls.superclass_name is None:
            return None

        return self._name_to_class.get(cls.superclass_name, None)

    def selected_profiles(self) -> Iterator[Profile]:
        """Iterate over the profiles selected for output."""
        for profile in self.profiles:
            if profile.selected:
                yield profile

    def is_selected(self, cls: SchemaClass) -> bool:
        """Check whether the ``cls`` is selected for output."""
        return cls.selected

    def selected_classes(self, profile: Profile) -> Iterator[SchemaClass]:
        """Iterate over the classes of the ``profile`` selected for output."""
        for cls in profile.classes:
            if self.is_selected(cls):
                yield cls
