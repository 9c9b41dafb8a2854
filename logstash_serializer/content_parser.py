"""Detects embedded structured content (JSON / YAML) and parses it into dicts.

Detection order:
  1. Starts with '---' -> YAML document
  2. First non-whitespace character is '{' -> JSON object
  3. Anything else is plain text
"""

import datetime
import enum
import json
import logging
import math
from dataclasses import dataclass

import yaml

from logstash_serializer.models import decode_text

logger = logging.getLogger(__name__)

YAML_DOCUMENT_MARKER = "---"
_WHITESPACE = " \t\r\n"
# Deepest container nesting accepted from embedded content
MAX_CONTENT_DEPTH = 256


class ContentFormat(enum.Enum):
    JSON = "json"
    YAML = "yaml"


class ContentParseError(ValueError):
    """Raised when detected content does not parse into a mapping."""


@dataclass(frozen=True)
class Scalar:
    """Content to be written as a plain string."""
    text: str


@dataclass(frozen=True)
class Structured:
    """Content to be written as a nested object."""
    fields: dict


def _as_text(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        return decode_text(bytes(data))
    return str(data)


def _reject_constant(name: str):
    raise ValueError(f"Non-finite number {name} is not allowed")


def _normalize_scalar(value):
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value
    return str(value)


def _normalize(value):
    """Coerce parsed values into types the document builder can encode.

    Walks the tree with an explicit stack. Containers nested deeper than
    MAX_CONTENT_DEPTH are rejected, which also stops self-referencing YAML
    anchors.
    """
    if not isinstance(value, (dict, list, tuple)):
        return _normalize_scalar(value)
    result = {} if isinstance(value, dict) else []
    pending = [(value, result, 1)]
    while pending:
        source, target, depth = pending.pop()
        if depth > MAX_CONTENT_DEPTH:
            raise ContentParseError(f"Content nests deeper than {MAX_CONTENT_DEPTH} levels")
        items = source.items() if isinstance(source, dict) else enumerate(source)
        for key, item in items:
            if isinstance(item, (dict, list, tuple)):
                child = {} if isinstance(item, dict) else []
                pending.append((item, child, depth + 1))
            else:
                child = _normalize_scalar(item)
            if isinstance(target, dict):
                target[str(key)] = child
            else:
                target.append(child)
    return result


def detect(data) -> ContentFormat | None:
    """Return the structured format *data* looks like, or None for plain text."""
    text = _as_text(data)
    if text.startswith(YAML_DOCUMENT_MARKER):
        return ContentFormat.YAML
    if text.lstrip(_WHITESPACE).startswith("{"):
        return ContentFormat.JSON
    return None


def parse(data, fmt: ContentFormat) -> dict:
    """Parse *data* as *fmt*.

    Raises:
        ContentParseError: If the content is malformed or is not a mapping.
    """
    text = _as_text(data)
    try:
        if fmt is ContentFormat.JSON:
            result = json.loads(text, parse_constant=_reject_constant)
        elif fmt is ContentFormat.YAML:
            result = yaml.safe_load(text)
        else:
            raise ContentParseError(f"Unsupported content format: {fmt!r}")
        if not isinstance(result, dict):
            raise ContentParseError(
                f"Expected a {fmt.value} object, got {type(result).__name__}"
            )
        return _normalize(result)
    except ContentParseError:
        raise
    except Exception as exc:
        # RecursionError from deeply nested input lands here too
        raise ContentParseError(f"Malformed {fmt.value} content: {exc}") from exc


def try_parse(value) -> dict | None:
    """Detect and parse in one step; None on any failure."""
    fmt = detect(value)
    if fmt is None:
        return None
    try:
        return parse(value, fmt)
    except ContentParseError as exc:
        logger.debug("Treating content as plain text: %s", exc)
        return None


def parse_or_scalar(data, allow_object: bool) -> Scalar | Structured:
    """Decide how a value is emitted: parsed object when allowed and parseable, else text."""
    if allow_object:
        fields = try_parse(data)
        if fields is not None:
            return Structured(fields)
    return Scalar(_as_text(data))
