"""
Schemas — named JSON schemas and the module metadata meta-schema.
"""

from pxp_agent.core.schemas.metadata import METADATA_SCHEMA_NAME, METADATA_VALIDATOR
from pxp_agent.core.schemas.validator import (
    Schema,
    SchemaError,
    SchemaNotFoundError,
    SchemaRedefinitionError,
    TypeConstraint,
    ValidationError,
    Validator,
    ValidatorError,
)

__all__ = [
    "METADATA_SCHEMA_NAME",
    "METADATA_VALIDATOR",
    "Schema",
    "SchemaError",
    "SchemaNotFoundError",
    "SchemaRedefinitionError",
    "TypeConstraint",
    "ValidationError",
    "Validator",
    "ValidatorError",
]
