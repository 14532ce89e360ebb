"""Provide common functionality across different tests."""
import os
from typing import List, Optional, Sequence, Mapping

from fhir_codegen import schema as fhir_schema
from fhir_codegen.common import Error, Identifier
from fhir_codegen.settings import ManualProperty, PackageIdentifier, Settings


# pylint: disable=missing-function-docstring


#: If set, this environment variable indicates that the golden files should be
#: re-recorded instead of checked against.
RERECORD = os.environ.get("FHIR_CODEGEN_RERECORD", "").lower() in (
    "1",
    "true",
    "on",
)


def new_property(
    name: str,
    declared_type: str,
    min_occurs: int = 0,
    max_occurs: Optional[int] = 1,
    short_doc: str = "",
) -> fhir_schema.SchemaProperty:
    return fhir_schema.SchemaProperty(
        original_name=name,
        declared_type=declared_type,
        min_occurs=min_occurs,
        max_occurs=max_occurs,
        short_doc=short_doc,
    )


def new_class(
    name: str,
    properties: Sequence[fhir_schema.SchemaProperty] = (),
    superclass_name: Optional[str] = None,
    short_doc: str = "",
    long_doc: str = "",
    selected: bool = True,
) -> fhir_schema.SchemaClass:
    """Create a class whose properties are keyed by their original names."""
    return fhir_schema.SchemaClass(
        name=Identifier(name),
        short_doc=short_doc,
        long_doc=long_doc,
        superclass_name=(
            Identifier(superclass_name) if superclass_name is not None else None
        ),
        properties={prop.original_name: prop for prop in properties},
        selected=selected,
    )


def new_schema(
    *classes: fhir_schema.SchemaClass, version: str = "4.0.1"
) -> fhir_schema.Schema:
    """Put all the ``classes`` in a single profile named ``Model``."""
    return fhir_schema.Schema(
        version=version,
        profiles=[
            fhir_schema.Profile(
                name="Model", target_name=Identifier("Model"), classes=list(classes)
            )
        ],
    )


def new_settings(
    type_map: Optional[Mapping[str, str]] = None,
    reserved_map: Optional[Mapping[str, str]] = None,
    default_values: Optional[Mapping[str, str]] = None,
    natives: Sequence[str] = (),
    manual_classes: Optional[Mapping[str, Sequence[ManualProperty]]] = None,
    strict_superclasses: bool = False,
) -> Settings:
    return Settings(
        package=PackageIdentifier("io.articulus.fhir.model"),
        type_map={
            key: Identifier(value) for key, value in (type_map or dict()).items()
        },
        reserved_map={
            key: Identifier(value) for key, value in (reserved_map or dict()).items()
        },
        default_values=default_values,
        natives=frozenset(natives),
        manual_classes={
            Identifier(key): value for key, value in (manual_classes or dict()).items()
        },
        strict_superclasses=strict_superclasses,
    )


def most_underlying_messages(errors: Sequence[Error]) -> List[str]:
    """Collect the messages of the "leaf" errors in depth-first order."""
    result = []  # type: List[str]

    stack = list(reversed(errors))
    while len(stack) > 0:
        error = stack.pop()
        if error.underlying is None or len(error.underlying) == 0:
            result.append(error.message)
        else:
            stack.extend(reversed(error.underlying))

    return result
