"""
Schema and Validator — named JSON schemas and document validation.

A ``Schema`` is either built declaratively (typed fields, required or
optional) or wrapped around a JSON schema document supplied by an
external module. A ``Validator`` is a registry of schemas by name.

Validation is delegated to ``jsonschema`` (Draft 7). Each schema
compiles its validator once, so a registry can be shared across
worker threads after loading.
"""

from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError as _JsonSchemaError

logger = logging.getLogger(__name__)


# ── Errors ──────────────────────────────────────────────────────


class ValidatorError(Exception):
    """Base class for schema registry errors."""


class SchemaError(ValidatorError):
    """Raised when a schema definition is malformed."""


class SchemaRedefinitionError(ValidatorError):
    """Raised when a schema name is registered twice."""


class SchemaNotFoundError(ValidatorError):
    """Raised when validating against an unregistered schema name."""


class ValidationError(ValidatorError):
    """Raised when a document violates a schema."""


# ── Schema ──────────────────────────────────────────────────────


class TypeConstraint(StrEnum):
    """JSON types usable in declarative constraints."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INT = "integer"
    DOUBLE = "number"
    BOOL = "boolean"
    NULL = "null"
    ANY = "any"


class Schema:
    """A named JSON schema.

    Without a ``definition`` the schema starts as an empty object schema
    and is populated with ``add_constraint``. With a ``definition`` the
    document is checked against the Draft 7 meta-schema; a malformed
    document raises ``SchemaError``.
    """

    def __init__(self, name: str, definition: dict[str, Any] | None = None):
        self.name = name
        self._compiled: Draft7Validator | None = None

        if definition is None:
            self._definition: dict[str, Any] = {
                "type": "object",
                "properties": {},
                "required": [],
            }
            return

        if not isinstance(definition, dict):
            raise SchemaError(
                f"schema '{name}' must be a JSON object, got {type(definition).__name__}"
            )
        try:
            Draft7Validator.check_schema(definition)
        except _JsonSchemaError as e:
            raise SchemaError(f"invalid schema '{name}': {e.message}") from e
        self._definition = definition

    @property
    def definition(self) -> dict[str, Any]:
        return self._definition

    def add_constraint(
        self,
        field: str,
        constraint: TypeConstraint | Schema,
        required: bool = False,
    ) -> None:
        """Constrain ``field`` to a JSON type or to a sub-schema.

        A sub-schema added to a field already constrained as an array
        becomes the schema of the array's items.
        """
        properties = self._definition.setdefault("properties", {})

        if isinstance(constraint, Schema):
            existing = properties.get(field)
            if existing and existing.get("type") == TypeConstraint.ARRAY:
                existing["items"] = constraint.definition
            else:
                properties[field] = constraint.definition
        elif constraint == TypeConstraint.ANY:
            properties[field] = {}
        else:
            properties[field] = {"type": str(constraint)}

        if required:
            required_fields = self._definition.setdefault("required", [])
            if field not in required_fields:
                required_fields.append(field)

        self._compiled = None

    def iter_errors(self, document: Any):
        if self._compiled is None:
            self._compiled = Draft7Validator(self._definition)
        return self._compiled.iter_errors(document)

    def __repr__(self) -> str:
        return f"<Schema name={self.name!r}>"


# ── Validator ───────────────────────────────────────────────────


def _format_error_path(path) -> str:
    if not path:
        return "$"
    return "$." + ".".join(str(p) for p in path)


class Validator:
    """Registry of named schemas.

    Registration happens while a module loads; afterwards the registry
    is only read.
    """

    def __init__(self):
        self._schemas: dict[str, Schema] = {}
        self._lock = threading.Lock()

    def register_schema(self, schema: Schema) -> None:
        with self._lock:
            if schema.name in self._schemas:
                raise SchemaRedefinitionError(f"schema '{schema.name}' already defined")
            self._schemas[schema.name] = schema
        logger.debug("Registered schema: %s", schema.name)

    def includes_schema(self, name: str) -> bool:
        return name in self._schemas

    def schema_names(self) -> list[str]:
        return list(self._schemas.keys())

    def validate(self, document: Any, name: str) -> None:
        """Validate ``document`` against the schema registered as ``name``.

        Raises:
            SchemaNotFoundError: No schema with that name.
            ValidationError: The document violates the schema.
        """
        schema = self._schemas.get(name)
        if schema is None:
            raise SchemaNotFoundError(f"'{name}' is not a registered schema")

        errors = sorted(schema.iter_errors(document), key=lambda e: [str(p) for p in e.path])
        if errors:
            details = "; ".join(
                f"{_format_error_path(e.path)}: {e.message}" for e in errors
            )
            raise ValidationError(details)

    def __len__(self) -> int:
        return len(self._schemas)
