"""
Module metadata meta-schema.

Every external module answers ``<module> metadata`` with a document
that must satisfy this schema. The validator is built once at import
time and shared read-only by every loader.
"""

from __future__ import annotations

from pxp_agent.core.schemas.validator import Schema, TypeConstraint, Validator

METADATA_SCHEMA_NAME = "external_module_metadata"
ACTION_SCHEMA_NAME = "action_metadata"

METADATA_CONFIGURATION_ENTRY = "configuration"
METADATA_ACTIONS_ENTRY = "actions"


def build_metadata_validator() -> Validator:
    """Build the validator holding the module metadata meta-schema."""
    metadata_schema = Schema(METADATA_SCHEMA_NAME)
    metadata_schema.add_constraint("description", TypeConstraint.STRING, required=True)
    metadata_schema.add_constraint(METADATA_CONFIGURATION_ENTRY, TypeConstraint.OBJECT)
    metadata_schema.add_constraint(METADATA_ACTIONS_ENTRY, TypeConstraint.ARRAY, required=True)

    action_schema = Schema(ACTION_SCHEMA_NAME)
    action_schema.add_constraint("description", TypeConstraint.STRING)
    action_schema.add_constraint("name", TypeConstraint.STRING, required=True)
    action_schema.add_constraint("input", TypeConstraint.OBJECT, required=True)
    action_schema.add_constraint("results", TypeConstraint.OBJECT, required=True)

    # array constraint above + sub-schema here = schema of each action entry
    metadata_schema.add_constraint(METADATA_ACTIONS_ENTRY, action_schema)

    validator = Validator()
    validator.register_schema(metadata_schema)
    return validator


METADATA_VALIDATOR = build_metadata_validator()
