"""Document builder: streams object/field operations into compact UTF-8 JSON.

The builder writes exactly what it is told, in order, so one sequence of
operations always yields the same bytes.  Structural misuse (unbalanced
objects, duplicate names in one object, use after serialization) raises
:class:`DocumentStructureError` immediately instead of producing a broken
document.
"""

import datetime
import json
from typing import Any, Mapping, Optional

from logstash_serializer.models import CHARSET


class DocumentStructureError(RuntimeError):
    """Raised when builder calls do not describe a well-formed document."""


def format_date(value) -> str:
    """Render a date/datetime as ISO 8601 UTC with millisecond precision."""
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc)
        return (
            f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
            f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
            f".{value.microsecond // 1000:03d}Z"
        )
    return value.isoformat()


def _encode_scalar(value: Any) -> str:
    if value is None or isinstance(value, (str, bool, int)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, float):
        try:
            return json.dumps(value, allow_nan=False)
        except ValueError as exc:
            raise DocumentStructureError(f"Cannot encode float {value!r}") from exc
    if isinstance(value, (datetime.datetime, datetime.date)):
        return json.dumps(format_date(value))
    raise DocumentStructureError(
        f"Unsupported value of type {type(value).__name__}"
    )


def _encode_value(value: Any) -> str:
    """Encode a value that appears inside an array."""
    if isinstance(value, Mapping):
        members = [
            json.dumps(str(k), ensure_ascii=False) + ":" + _encode_value(v)
            for k, v in value.items()
        ]
        return "{" + ",".join(members) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode_value(v) for v in value) + "]"
    return _encode_scalar(value)


class DocumentBuilder:
    """Incremental JSON document writer with start/end object semantics."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        # Names already written in each currently open object
        self._open: list[set] = []
        self._started = False
        self._closed = False

    @property
    def depth(self) -> int:
        return len(self._open)

    def start_object(self, name: Optional[str] = None) -> "DocumentBuilder":
        """Open the root object (no name) or a named nested object."""
        self._check_usable()
        if name is None:
            if self._started:
                raise DocumentStructureError("Root object already started")
            self._started = True
        else:
            self._write_name(name)
        self._parts.append("{")
        self._open.append(set())
        return self

    def end_object(self) -> "DocumentBuilder":
        self._check_usable()
        if not self._open:
            raise DocumentStructureError("end_object() without a matching start_object()")
        self._open.pop()
        self._parts.append("}")
        return self

    def field(self, name: str, value: Any) -> "DocumentBuilder":
        """Write a named value; mappings become nested objects, sequences arrays."""
        self._check_usable()
        if not isinstance(value, Mapping):
            return self._write_value(name, value)
        self.start_object(name)
        # One item iterator per open mapping, so nesting depth is not limited
        pending = [iter(value.items())]
        while pending:
            for key, item in pending[-1]:
                if isinstance(item, Mapping):
                    self.start_object(str(key))
                    pending.append(iter(item.items()))
                    break
                self._write_value(str(key), item)
            else:
                pending.pop()
                self.end_object()
        return self

    def _write_value(self, name: str, value: Any) -> "DocumentBuilder":
        if isinstance(value, (list, tuple)):
            return self.array(name, value)
        encoded = _encode_scalar(value)
        self._write_name(name)
        self._parts.append(encoded)
        return self

    def array(self, name: str, values) -> "DocumentBuilder":
        self._check_usable()
        encoded = "[" + ",".join(_encode_value(v) for v in values) + "]"
        self._write_name(name)
        self._parts.append(encoded)
        return self

    def has_field(self, name: str) -> bool:
        """Whether *name* was already written in the innermost open object."""
        return bool(self._open) and name in self._open[-1]

    def to_bytes(self) -> bytes:
        """Serialize the finished document. The builder is unusable afterwards."""
        self._check_usable()
        if not self._started:
            raise DocumentStructureError("Nothing to serialize: root object never started")
        if self._open:
            raise DocumentStructureError(
                f"Cannot serialize: {len(self._open)} object(s) still open"
            )
        self._closed = True
        return "".join(self._parts).encode(CHARSET)

    def _write_name(self, name: str) -> None:
        if not isinstance(name, str):
            raise DocumentStructureError(
                f"Field name must be a string, got {type(name).__name__}"
            )
        if not self._open:
            raise DocumentStructureError(f"Field {name!r} written outside of an object")
        names = self._open[-1]
        if name in names:
            raise DocumentStructureError(f"Duplicate field {name!r} in the same object")
        if names:
            self._parts.append(",")
        names.add(name)
        self._parts.append(json.dumps(name, ensure_ascii=False) + ":")

    def _check_usable(self) -> None:
        if self._closed:
            raise DocumentStructureError("Document already serialized")
