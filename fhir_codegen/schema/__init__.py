"""Provide the in-memory model of one revision of the FHIR schema."""

from fhir_codegen.schema import _types, _load

SchemaProperty = _types.SchemaProperty
SchemaClass = _types.SchemaClass
Profile = _types.Profile
Schema = _types.Schema

schema_from_jsonable = _load.schema_from_jsonable
load = _load.load
