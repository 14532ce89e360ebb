"""Map the schema classes to the declarations of the target language."""
import datetime
from typing import List, Optional, Sequence, Tuple, MutableMapping

from icontract import require, ensure

from fhir_codegen import schema as fhir_schema
from fhir_codegen.common import (
    Error,
    Identifier,
    IDENTIFIER_RE,
    Stripped,
    is_single_line,
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
from fhir_codegen.settings import ManualProperty, Settings


# fmt: off
@require(lambda version: is_single_line(version))
@require(lambda attribution: is_single_line(attribution))
@ensure(lambda result: len(result.splitlines()) == 2)
# fmt: on
def generate_header(
    version: str, generated_at: datetime.datetime, attribution: str
) -> Stripped:
    """Generate the attribution and the timestamp of a generated unit."""
    return Stripped(
        f"""\
Generated from FHIR Version {version} on {generated_at.isoformat()}
{generated_at.year}, {attribution}""".strip()
    )


def construct_field(
    name: Identifier,
    type_ref: TypeRef,
    initializer: Optional[Initializer],
    mutable: bool,
    original_name: Optional[str] = None,
    doc: Optional[str] = None,
) -> FieldDecl:
    """
    Construct a field and attach the serialization alias if it has been renamed.

    The ``original_name`` is the name on the wire. If it differs from the emitted
    ``name``, the field carries it as its alias.
    """
    alias = None  # type: Optional[str]
    if original_name is not None and original_name != name:
        alias = original_name

    return FieldDecl(
        name=name,
        type_ref=type_ref,
        initializer=initializer,
        mutable=mutable,
        alias=alias,
        doc=doc,
    )


class Emitter:
    """Emit the declarations based on the schema and the policy tables."""

    def __init__(self, schema: fhir_schema.Schema, settings: Settings) -> None:
        """Initialize with the given values."""
        self.schema = schema
        self.settings = settings

    def _is_known_type(self, declared_type: str) -> bool:
        """Check that the ``declared_type`` refers to something we can emit."""
        return (
            declared_type.lower() in self.settings.type_map
            or self.schema.find_class(declared_type) is not None
            or declared_type in self.settings.natives
            or declared_type in self.settings.manual_classes
            or declared_type == self.settings.abstract_base_name
        )

    # fmt: off
    @ensure(lambda result: (result[0] is None) ^ (result[1] is None))
    @ensure(
        lambda prop, result:
        not (result[0] is not None and prop.is_list())
        or (
            result[0].type_ref.is_list
            and not result[0].type_ref.is_nullable
            and isinstance(result[0].initializer, EmptyList)
        ),
        "Sequences are initialized empty and never nullable"
    )
    # fmt: on
    def emit_property(
        self, cls: fhir_schema.SchemaClass, prop: fhir_schema.SchemaProperty
    ) -> Tuple[Optional[FieldDecl], Optional[Error]]:
        """Emit the field of the property ``prop`` defined in the class ``cls``."""
        if not self._is_known_type(prop.declared_type):
            return None, Error(
                f"The property {prop.original_name!r} of the class {cls.name!r} "
                f"refers to the type {prop.declared_type!r} which is neither "
                f"a class of the schema nor listed in the type map"
            )

        mapped_type = self.settings.type_map.get(
            prop.declared_type.lower(), prop.declared_type
        )
        if not IDENTIFIER_RE.fullmatch(mapped_type):
            return None, Error(
                f"The type {mapped_type!r} of the property {prop.original_name!r} "
                f"of the class {cls.name!r} is not a valid identifier; "
                f"please map it in the type map"
            )
        emitted_type = Identifier(mapped_type)

        mapped_name = self.settings.reserved_map.get(
            prop.original_name, prop.original_name
        )
        if not IDENTIFIER_RE.fullmatch(mapped_name):
            return None, Error(
                f"The name of the property {prop.original_name!r} "
                f"of the class {cls.name!r} is not a valid identifier; "
                f"please map it in the reserved-word map"
            )
        emitted_name = Identifier(mapped_name)

        if prop.is_list():
            return (
                construct_field(
                    name=emitted_name,
                    type_ref=TypeRef(name=emitted_type, is_list=True),
                    initializer=EmptyList(),
                    mutable=False,
                    original_name=prop.original_name,
                ),
                None,
            )

        initializer: Initializer
        if prop.is_optional():
            initializer = Null()
        else:
            default_value = self.settings.default_values.get(emitted_type, None)
            if default_value is not None:
                initializer = Expression(default_value)
            else:
                initializer = DefaultConstruction(emitted_type)

        return (
            construct_field(
                name=emitted_name,
                type_ref=TypeRef(name=emitted_type, is_nullable=prop.is_optional()),
                initializer=initializer,
                mutable=True,
                original_name=prop.original_name,
                doc=prop.short_doc,
            ),
            None,
        )

    def _resolve_superclass(
        self, cls: fhir_schema.SchemaClass
    ) -> Tuple[Optional[Identifier], Optional[Error]]:
        """
        Determine the name of the type which the ``cls`` extends.

        A missing superclass falls back to the rules for root types unless
        the settings ask for strictness.
        """
        if cls.superclass_name is not None:
            superclass = self.schema.find_superclass(cls)
            if superclass is not None:
                return superclass.name, None

            if self.settings.strict_superclasses:
                return None, Error(
                    f"The superclass {cls.superclass_name!r} of the class "
                    f"{cls.name!r} is not defined in the schema"
                )

        if cls.name == self.settings.root_resource_name:
            return self.settings.abstract_base_name, None

        return None, None

    @ensure(lambda result: (result[0] is None) ^ (result[1] is None))
    def emit_class(
        self, cls: fhir_schema.SchemaClass
    ) -> Tuple[Optional[Declaration], Optional[Error]]:
        """Emit the declaration of the class ``cls``."""
        errors = []  # type: List[Error]

        fields = []  # type: List[FieldDecl]
        observed = dict()  # type: MutableMapping[Identifier, str]

        for key, prop in cls.properties.items():
            field, error = self.emit_property(cls, prop)
            if error is not None:
                errors.append(error)
                continue

            assert field is not None

            other_key = observed.get(field.name, None)
            if other_key is not None:
                errors.append(
                    Error(
                        f"The emitted name {field.name!r} of the property {key!r} "
                        f"collides with the emitted name of the property {other_key!r}"
                    )
                )
                continue

            observed[field.name] = key
            fields.append(field)

        superclass, error = self._resolve_superclass(cls)
        if error is not None:
            errors.append(error)

        if len(errors) > 0:
            return None, Error(
                f"Failed to emit the declaration of the class {cls.name!r}", errors
            )

        return (
            Declaration(
                name=cls.name,
                short_doc=cls.short_doc,
                long_doc=cls.long_doc,
                superclass=superclass,
                fields=fields,
            ),
            None,
        )

    @ensure(lambda result: (result[0] is None) ^ (result[1] is None))
    def emit_profile(
        self, profile: fhir_schema.Profile, header: Optional[Stripped]
    ) -> Tuple[Optional[OutputUnit], Optional[List[Error]]]:
        """Emit the declarations of the selected classes in the ``profile``."""
        declarations = []  # type: List[Declaration]
        errors = []  # type: List[Error]

        for cls in self.schema.selected_classes(profile):
            if cls.name in self.settings.natives:
                continue

            declaration, error = self.emit_class(cls)
            if error is not None:
                errors.append(error)
                continue

            assert declaration is not None
            declarations.append(declaration)

        if len(errors) > 0:
            return None, errors

        return (
            OutputUnit(
                package=self.settings.package,
                name=profile.target_name,
                header=header,
                declarations=declarations,
            ),
            None,
        )

    @staticmethod
    def emit_manual_class(
        name: Identifier, properties: Sequence[ManualProperty]
    ) -> Declaration:
        """Emit the declaration of a class which is not described by the schema."""
        fields = [
            construct_field(
                name=prop.name,
                type_ref=TypeRef(name=prop.type_name),
                initializer=(
                    Expression(prop.initializer)
                    if len(prop.initializer.strip()) > 0
                    else None
                ),
                mutable=True,
            )
            for prop in properties
        ]

        return Declaration(
            name=name, short_doc=None, long_doc=None, superclass=None, fields=fields
        )

    def emit_manual_units(self) -> List[OutputUnit]:
        """Emit one unit for each manually specified class."""
        subdirectory = (
            self.settings.manual_classes_dir.as_posix()
            if self.settings.manual_classes_dir is not None
            else None
        )

        return [
            OutputUnit(
                package=self.settings.package,
                name=name,
                header=None,
                declarations=[self.emit_manual_class(name, properties)],
                subdirectory=subdirectory,
            )
            for name, properties in self.settings.manual_classes.items()
        ]


@ensure(lambda result: (result[0] is None) ^ (result[1] is None))
def emit(
    schema: fhir_schema.Schema,
    settings: Settings,
    generated_at: datetime.datetime,
) -> Tuple[Optional[List[OutputUnit]], Optional[List[Error]]]:
    """
    Emit all the output units of a generation run.

    The manual classes come first, followed by one unit per selected profile.
    """
    emitter = Emitter(schema=schema, settings=settings)

    units = emitter.emit_manual_units()
    errors = []  # type: List[Error]

    header = generate_header(
        version=schema.version,
        generated_at=generated_at,
        attribution=settings.header_attribution,
    )

    for profile in schema.selected_profiles():
        unit, profile_errors = emitter.emit_profile(profile, header)
        if profile_errors is not None:
            errors.extend(profile_errors)
            continue

        assert unit is not None
        units.append(unit)

    if len(errors) > 0:
        return None, errors

    return units, None
