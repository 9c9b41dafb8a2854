"""JSON Schema for the LogStash envelope and a validator for built documents."""

import json

import jsonschema

_STRING_OR_OBJECT = {"type": ["string", "object"]}

LOGSTASH_ENVELOPE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "LogStash event envelope",
    "type": "object",
    "required": ["@message"],
    "properties": {
        "@message": _STRING_OR_OBJECT,
        "@timestamp": {
            "type": "string",
            "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$",
        },
        "@source": _STRING_OR_OBJECT,
        "@type": _STRING_OR_OBJECT,
        "@source_host": _STRING_OR_OBJECT,
        "@source_path": _STRING_OR_OBJECT,
        "@fields": {"type": "object"},
    },
    # Custom fields live at the top level when the @fields prefix is removed
    "additionalProperties": True,
}

_validator = jsonschema.Draft202012Validator(LOGSTASH_ENVELOPE_SCHEMA)


def validate_document(document) -> tuple[bool, list[str]]:
    """Validate a document (dict, or serialized JSON bytes/str) against the envelope.

    Returns:
        tuple: (is_valid: bool, errors: list[str])
    """
    if isinstance(document, (bytes, bytearray, str)):
        document = json.loads(document)

    errors = [error.message for error in _validator.iter_errors(document)]
    return not errors, errors
