"""Load the schema model from its JSON representation."""
import json
import pathlib
import re
from typing import Any, List, Mapping, MutableMapping, Optional, Tuple

from icontract import ensure

from fhir_codegen.common import IDENTIFIER_RE, Identifier, is_single_line
from fhir_codegen.schema._types import Profile, Schema, SchemaClass, SchemaProperty

#: Upper bound given as a string of ASCII digits, *e.g.*, ``"1"``
_DIGITS_RE = re.compile(r"[0-9]+")


class _Reader:
    """Read the JSON values and collect the errors together with their paths."""

    def __init__(self) -> None:
        self.errors = []  # type: List[str]

    def error(self, path: str, message: str) -> None:
        """Record an error at the given JSON ``path``."""
        self.errors.append(f"{path}: {message}")

    def text(
        self, obj: Mapping[str, Any], key: str, path: str, default: Optional[str] = None
    ) -> Optional[str]:
        """Read a string, or return the ``default`` if the ``key`` is missing."""
        if key not in obj:
            if default is None:
                self.error(path, f"Expected the property {key!r}")
            return default

        value = obj[key]
        if not isinstance(value, str):
            self.error(
                f"{path}.{key}", f"Expected a string, but got {type(value).__name__}"
            )
            return None

        return value

    def identifier(
        self, obj: Mapping[str, Any], key: str, path: str
    ) -> Optional[Identifier]:
        """Read a string which needs to be a valid identifier."""
        value = self.text(obj, key, path)
        if value is None:
            return None

        if not IDENTIFIER_RE.fullmatch(value):
            self.error(f"{path}.{key}", f"Expected an identifier, but got {value!r}")
            return None

        return Identifier(value)

    def flag(self, obj: Mapping[str, Any], key: str, path: str) -> bool:
        """Read a boolean which defaults to true."""
        value = obj.get(key, True)
        if not isinstance(value, bool):
            self.error(
                f"{path}.{key}", f"Expected a boolean, but got {type(value).__name__}"
            )
            return False

        return value

    def array(self, obj: Mapping[str, Any], key: str, path: str) -> List[Any]:
        """Read an array which defaults to an empty one."""
        value = obj.get(key, [])
        if not isinstance(value, list):
            self.error(
                f"{path}.{key}", f"Expected an array, but got {type(value).__name__}"
            )
            return []

        return value

    def must_be_object(self, value: Any, path: str) -> bool:
        """Check that the ``value`` is a JSON object."""
        if not isinstance(value, dict):
            self.error(path, f"Expected an object, but got {type(value).__name__}")
            return False

        return True


def _read_min(reader: _Reader, jsonable: Mapping[str, Any], path: str) -> Optional[int]:
    value = jsonable.get("min", 0)

    # NOTE: ``bool`` is a subclass of ``int`` in Python.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        reader.error(
            f"{path}.min", f"Expected a non-negative integer, but got {value!r}"
        )
        return None

    return value


def _read_max(
    reader: _Reader, jsonable: Mapping[str, Any], path: str
) -> Tuple[Optional[int], bool]:
    """Read the upper bound as ``(value, ok)`` where ``None`` stands for unbounded."""
    value = jsonable.get("max", 1)

    if value == "*":
        return None, True

    if isinstance(value, str) and _DIGITS_RE.fullmatch(value):
        value = int(value)

    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        reader.error(
            f"{path}.max", f"Expected a positive integer or '*', but got {value!r}"
        )
        return None, False

    return value, True


def _read_property(
    reader: _Reader, jsonable: Any, path: str
) -> Optional[Tuple[str, SchemaProperty]]:
    if not reader.must_be_object(jsonable, path):
        return None

    name = reader.text(jsonable, "name", path)
    declared_type = reader.text(jsonable, "type", path)
    short_doc = reader.text(jsonable, "short", path, default="")
    min_occurs = _read_min(reader, jsonable, path)
    max_occurs, max_ok = _read_max(reader, jsonable, path)

    if name is None or declared_type is None or min_occurs is None or not max_ok:
        return None

    if len(name) == 0:
        reader.error(f"{path}.name", "Expected a non-empty name")
        return None

    if len(declared_type) == 0:
        reader.error(f"{path}.type", "Expected a non-empty type")
        return None

    key = reader.text(jsonable, "key", path, default=name)
    if key is None:
        return None

    assert short_doc is not None

    return key, SchemaProperty(
        original_name=name,
        declared_type=declared_type,
        min_occurs=min_occurs,
        max_occurs=max_occurs,
        short_doc=short_doc,
    )


def _read_class(reader: _Reader, jsonable: Any, path: str) -> Optional[SchemaClass]:
    if not reader.must_be_object(jsonable, path):
        return None

    name = reader.identifier(jsonable, "name", path)
    short_doc = reader.text(jsonable, "short", path, default="")
    long_doc = reader.text(jsonable, "formal", path, default="")

    superclass_name = None  # type: Optional[Identifier]
    if jsonable.get("superclass", None) is not None:
        superclass_name = reader.identifier(jsonable, "superclass", path)
        if superclass_name is None:
            return None

    selected = reader.flag(jsonable, "selected", path)

    properties = dict()  # type: MutableMapping[str, SchemaProperty]
    properties_ok = True
    for i, prop_jsonable in enumerate(reader.array(jsonable, "properties", path)):
        prop_path = f"{path}.properties[{i}]"
        key_prop = _read_property(reader, prop_jsonable, prop_path)
        if key_prop is None:
            properties_ok = False
            continue

        key, prop = key_prop
        if key in properties:
            reader.error(prop_path, f"The property key {key!r} is duplicated")
            properties_ok = False
            continue

        properties[key] = prop

    if name is None or short_doc is None or long_doc is None or not properties_ok:
        return None

    return SchemaClass(
        name=name,
        short_doc=short_doc,
        long_doc=long_doc,
        superclass_name=superclass_name,
        properties=properties,
        selected=selected,
    )


def _read_profile(reader: _Reader, jsonable: Any, path: str) -> Optional[Profile]:
    if not reader.must_be_object(jsonable, path):
        return None

    name = reader.text(jsonable, "name", path)
    if name is None:
        return None

    target_name = None  # type: Optional[Identifier]
    if "target_name" in jsonable:
        target_name = reader.identifier(jsonable, "target_name", path)
    elif IDENTIFIER_RE.fullmatch(name):
        target_name = Identifier(name)
    else:
        reader.error(
            path,
            f"The profile name {name!r} is not an identifier, "
            f"so the property 'target_name' needs to be specified",
        )

    selected = reader.flag(jsonable, "selected", path)

    classes = []  # type: List[SchemaClass]
    classes_ok = True
    for i, cls_jsonable in enumerate(reader.array(jsonable, "classes", path)):
        cls = _read_class(reader, cls_jsonable, f"{path}.classes[{i}]")
        if cls is None:
            classes_ok = False
        else:
            classes.append(cls)

    if target_name is None or not classes_ok:
        return None

    return Profile(
        name=name, target_name=target_name, classes=classes, selected=selected
    )


@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
def schema_from_jsonable(
    jsonable: Any,
) -> Tuple[Optional[Schema], Optional[List[str]]]:
    """
    Translate the JSON-able structure into the schema model.

    :return: either the schema, or the errors
    """
    reader = _Reader()

    if not reader.must_be_object(jsonable, "$"):
        return None, reader.errors

    version = reader.text(jsonable, "version", "$")
    if version is not None and not is_single_line(version):
        reader.error(
            "$.version", f"Expected a single-line version, but got {version!r}"
        )

    profiles = []  # type: List[Profile]
    for i, profile_jsonable in enumerate(reader.array(jsonable, "profiles", "$")):
        profile = _read_profile(reader, profile_jsonable, f"$.profiles[{i}]")
        if profile is not None:
            profiles.append(profile)

    if len(reader.errors) > 0:
        return None, reader.errors

    assert version is not None

    observed = dict()  # type: MutableMapping[str, str]
    for profile in profiles:
        for cls in profile.classes:
            other = observed.get(cls.name, None)
            if other is not None:
                reader.error(
                    "$",
                    f"The class {cls.name!r} is defined both in the profile "
                    f"{other!r} and in the profile {profile.name!r}",
                )
            else:
                observed[cls.name] = profile.name

    if len(reader.errors) > 0:
        return None, reader.errors

    return Schema(version=version, profiles=profiles), None


@ensure(lambda result: (result[0] is not None) ^ (result[1] is not None))
def load(path: pathlib.Path) -> Tuple[Optional[Schema], Optional[List[str]]]:
    """
    Read the schema from the JSON file at ``path``.

    :return: either the schema, or the errors
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exception:
        return None, [f"Failed to read the schema from {path}: {exception}"]

    try:
        jsonable = json.loads(text)
    except json.JSONDecodeError as exception:
        return None, [f"Failed to parse the schema {path} as JSON: {exception}"]

    return schema_from_jsonable(jsonable)
