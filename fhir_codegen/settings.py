"""Provide the policy tables which steer the emission of the declarations."""
import json
import pathlib
import re
from typing import (
    Any,
    Final,
    FrozenSet,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Sequence,
    Tuple,
    cast,
)

from icontract import require, ensure

from fhir_codegen.common import IDENTIFIER_RE, Identifier, is_single_line

# noinspection RegExpSimplifiable
PACKAGE_IDENTIFIER_RE = re.compile(r"[a-zA-Z_][a-zA-Z_0-9]*(\.[a-zA-Z_][a-zA-Z_0-9]*)*")


class PackageIdentifier(str):
    """Capture a dot-separated package identifier."""

    @require(lambda identifier: PACKAGE_IDENTIFIER_RE.fullmatch(identifier))
    def __new__(cls, identifier: str) -> "PackageIdentifier":
        return cast(PackageIdentifier, identifier)


class ManualProperty:
    """Represent a property of a manually specified class."""

    #: Name of the property
    name: Final[Identifier]

    #: Emitted type of the property
    type_name: Final[Identifier]

    #: Initializer expression; empty if the property is not initialized
    initializer: Final[str]

    def __init__(
        self, name: Identifier, type_name: Identifier, initializer: str
    ) -> None:
        """Initialize with the given values."""
        self.name = name
        self.type_name = type_name
        self.initializer = initializer


class Settings:
    """Represent the read-only configuration of a generation run."""

    #: Package of the generated types
    package: Final[PackageIdentifier]

    #: Map lower-cased declared types to emitted type names
    type_map: Final[Mapping[str, Identifier]]

    #: Map original property names to names which are safe in the target language
    reserved_map: Final[Mapping[str, Identifier]]

    #: Map emitted type names to their default-value expressions
    default_values: Final[Mapping[str, str]]

    #: Classes which are written by hand and must not be emitted
    natives: Final[FrozenSet[str]]

    #: Classes which are not described by the schema, in the order of emission
    manual_classes: Final[Mapping[Identifier, Sequence[ManualProperty]]]

    #: Name of the class at the root of all the resources
    root_resource_name: Final[Identifier]

    #: Abstract base type which the root resource extends
    abstract_base_name: Final[Identifier]

    #: Attribution put in the header of every generated profile
    header_attribution: Final[str]

    #: Directory of the manual classes relative to the output directory, if any
    manual_classes_dir: Final[Optional[pathlib.PurePosixPath]]

    #: If set, an unresolvable superclass is an error instead of a root type
    strict_superclasses: Final[bool]

    @require(lambda type_map: all(key == key.lower() for key in type_map))
    def __init__(
        self,
        package: PackageIdentifier,
        type_map: Optional[Mapping[str, Identifier]] = None,
        reserved_map: Optional[Mapping[str, Identifier]] = None,
        default_values: Optional[Mapping[str, str]] = None,
        natives: Optional[FrozenSet[str]] = None,
        manual_classes: Optional[Mapping[Identifier, Sequence[ManualProperty]]] = None,
        root_resource_name: Identifier = Identifier("Resource"),
        abstract_base_name: Identifier = Identifier("FhirAbstractResource"),
        header_attribution: str = "Articulus",
        manual_classes_dir: Optional[pathlib.PurePosixPath] = None,
        strict_superclasses: bool = False,
    ) -> None:
        """Initialize with the given values."""
        self.package = package
        self.type_map = type_map if type_map is not None else dict()
        self.reserved_map = reserved_map if reserved_map is not None else dict()
        self.default_values = default_values if default_values is not None else dict()
        self.natives = natives if natives is not None else frozenset()
        self.manual_classes = manual_classes if manual_classes is not None else dict()
        self.root_resource_name = root_resource_name
        self.abstract_base_name = abstract_base_name
        self.header_attribution = header_attribution
        self.manual_classes_dir = manual_classes_dir
        self.strict_superclasses = strict_superclasses


# region Loading


def _read_identifier_map(
    jsonable: Any, path: str, errors: List[str], lower_keys: bool
) -> MutableMapping[str, Identifier]:
    result = dict()  # type: MutableMapping[str, Identifier]

    if not isinstance(jsonable, dict):
        errors.append(f"{path}: Expected an object, but got {type(jsonable).__name__}")
        return result

    for key, value in jsonable.items():
        if not isinstance(value, str) or not IDENTIFIER_RE.fullmatch(value):
            errors.append(f"{path}.{key}: Expected an identifier, but got {value!r}")
            continue

        map_key = key.lower() if lower_keys else key
        if map_key in result:
            errors.append(
                f"{path}.{key}: The key collides with another key "
                f"when lower-cased: {map_key!r}"
            )
            continue

        result[map_key] = Identifier(value)

    return result


def _read_manual_classes(
    jsonable: Any, errors: List[str]
) -> MutableMapping[Identifier, Sequence[ManualProperty]]:
    result = dict()  # type: MutableMapping[Identifier, Sequence[ManualProperty]]

    if not isinstance(jsonable, dict):
        errors.append(
            f"$.manual_classes: Expected an object, "
            f"but got {type(jsonable).__name__}"
        )
        return result

    for name, props_jsonable in jsonable.items():
        path = f"$.manual_classes.{name}"
        if not IDENTIFIER_RE.fullmatch(name):
            errors.append(f"{path}: Expected an identifier as the class name")
            continue

        if not isinstance(props_jsonable, list):
            errors.append(
                f"{path}: Expected an array, but got {type(props_jsonable).__name__}"
            )
            continue

        props = []  # type: List[ManualProperty]
        for i, prop_jsonable in enumerate(props_jsonable):
            prop_path = f"{path}[{i}]"
            if not isinstance(prop_jsonable, dict):
                errors.append(f"{prop_path}: Expected an object")
                continue

            prop_name = prop_jsonable.get("name", None)
            type_name = prop_jsonable.get("type", None)
            initializer = prop_jsonable.get("initializer", "")

            if not isinstance(prop_name, str) or not IDENTIFIER_RE.fullmatch(
                prop_name
            ):
                errors.append(
                    f"{prop_path}.name: Expected an identifier, but got {prop_name!r}"
                )
                continue

            if not isinstance(type_name, str) or not IDENTIFIER_RE.fullmatch(
                type_name
            ):
                errors.append(
                    f"{prop_path}.type: Expected an identifier, but got {type_name!r}"
                )
                continue

            if not isinstance(initializer, str):
                errors.append(
                    f"{prop_path}.initializer: Expected a string, "
                    f"but got {type(initializer).__name__}"
                )
                continue

            props.append(
                ManualProperty(
                    name=Identifier(prop_name),
                    type_name=Identifier(type_name),
                    initializer=initializer,
                )
            )

        result[Identifier(name)] = props

    return result


@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
def settings_from_jsonable(
    jsonable: Any,
) -> Tuple[Optional[Settings], Optional[List[str]]]:
    """
    Translate the JSON-able structure into the settings.

    :return: either the settings, or the errors
    """
    if not isinstance(jsonable, dict):
        return None, [f"$: Expected an object, but got {type(jsonable).__name__}"]

    errors = []  # type: List[str]

    package = jsonable.get("package", None)
    if not isinstance(package, str) or not PACKAGE_IDENTIFIER_RE.fullmatch(package):
        errors.append(f"$.package: Expected a package identifier, but got {package!r}")

    type_map = _read_identifier_map(
        jsonable.get("type_map", dict()), "$.type_map", errors, lower_keys=True
    )
    reserved_map = _read_identifier_map(
        jsonable.get("reserved_map", dict()), "$.reserved_map", errors, lower_keys=False
    )

    default_values = dict()  # type: MutableMapping[str, str]
    default_values_jsonable = jsonable.get("default_values", dict())
    if not isinstance(default_values_jsonable, dict):
        errors.append("$.default_values: Expected an object")
    else:
        for key, value in default_values_jsonable.items():
            if not isinstance(value, str) or len(value.strip()) == 0:
                errors.append(
                    f"$.default_values.{key}: Expected a non-blank expression, "
                    f"but got {value!r}"
                )
            else:
                default_values[key] = value

    natives_jsonable = jsonable.get("natives", [])
    if not isinstance(natives_jsonable, list) or not all(
        isinstance(item, str) for item in natives_jsonable
    ):
        errors.append("$.natives: Expected an array of strings")
        natives_jsonable = []

    manual_classes = _read_manual_classes(
        jsonable.get("manual_classes", dict()), errors
    )

    names = dict()  # type: MutableMapping[str, Identifier]
    for key, default in (
        ("root_resource_name", "Resource"),
        ("abstract_base_name", "FhirAbstractResource"),
    ):
        value = jsonable.get(key, default)
        if not isinstance(value, str) or not IDENTIFIER_RE.fullmatch(value):
            errors.append(f"$.{key}: Expected an identifier, but got {value!r}")
        else:
            names[key] = Identifier(value)

    header_attribution = jsonable.get("header_attribution", "Articulus")
    if not isinstance(header_attribution, str) or not is_single_line(
        header_attribution
    ):
        errors.append(
            f"$.header_attribution: Expected a single-line string, "
            f"but got {header_attribution!r}"
        )

    manual_classes_dir = None  # type: Optional[pathlib.PurePosixPath]
    manual_classes_dir_jsonable = jsonable.get("manual_classes_dir", None)
    if manual_classes_dir_jsonable is not None:
        if not isinstance(manual_classes_dir_jsonable, str):
            errors.append("$.manual_classes_dir: Expected a string")
        else:
            manual_classes_dir = pathlib.PurePosixPath(manual_classes_dir_jsonable)
            if manual_classes_dir.is_absolute() or ".." in manual_classes_dir.parts:
                errors.append(
                    f"$.manual_classes_dir: Expected a path relative "
                    f"to the output directory, but got {manual_classes_dir_jsonable!r}"
                )

    strict_superclasses = jsonable.get("strict_superclasses", False)
    if not isinstance(strict_superclasses, bool):
        errors.append("$.strict_superclasses: Expected a boolean")

    if len(errors) > 0:
        return None, errors

    return (
        Settings(
            package=PackageIdentifier(package),
            type_map=type_map,
            reserved_map=reserved_map,
            default_values=default_values,
            natives=frozenset(natives_jsonable),
            manual_classes=manual_classes,
            root_resource_name=names["root_resource_name"],
            abstract_base_name=names["abstract_base_name"],
            header_attribution=header_attribution,
            manual_classes_dir=manual_classes_dir,
            strict_superclasses=strict_superclasses,
        ),
        None,
    )


@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
def load(path: pathlib.Path) -> Tuple[Optional[Settings], Optional[List[str]]]:
    """
    Read the settings from the JSON file at ``path``.

    :return: either the settings, or the errors
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exception:
        return None, [f"Failed to read the settings from {path}: {exception}"]

    try:
        jsonable = json.loads(text)
    except json.JSONDecodeError as exception:
        return None, [f"Failed to parse the settings {path} as JSON: {exception}"]

    return settings_from_jsonable(jsonable)


# endregion
