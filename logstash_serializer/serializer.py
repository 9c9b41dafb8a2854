"""LogStash-style event serializer: turns an event into an indexable JSON document.

Output layout::

    {
       "@message": "the original plain-text message",
       "@timestamp": "2010-12-21T21:48:33.309Z",
       "@source": "source of the event, usually a URL",
       "@type": "string",
       "@source_host": "",
       "@source_path": "",
       "@fields": {
          "user": "jordan",
          "command": "shutdown -r"
       }
    }

Headers promoted to reserved fields, as long as the reserved field is not
already present in the headers and the header value is not blank::

    message   -> @message       (otherwise the event body)
    timestamp -> @timestamp     (epoch milliseconds, written as a date)
    source    -> @source
    type      -> @type
    host      -> @source_host
    src_path  -> @source_path

Every other header is a custom field, nested under ``@fields`` unless
``remove_fields_prefix`` is set.
"""

import datetime
import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from logstash_serializer.collation import collate
from logstash_serializer.config import SerializerConfig
from logstash_serializer.content_builder import DocumentBuilder
from logstash_serializer.content_parser import Structured, parse_or_scalar
from logstash_serializer.models import Event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservedField:
    header: str
    output: str


MESSAGE = ReservedField("message", "@message")
TIMESTAMP = ReservedField("timestamp", "@timestamp")
RESERVED_FIELDS = (
    MESSAGE,
    TIMESTAMP,
    ReservedField("source", "@source"),
    ReservedField("type", "@type"),
    ReservedField("host", "@source_host"),
    ReservedField("src_path", "@source_path"),
)

# Object-field name that controls parsing of the event body
BODY = "body"
FIELDS_CONTAINER = "@fields"

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_EPOCH_MILLIS_RE = re.compile(r"[+-]?\d+")


class MalformedTimestampError(ValueError):
    """Raised when a timestamp header is not a count of epoch milliseconds."""


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_timestamp(value: str) -> datetime.datetime:
    """Convert epoch milliseconds (as text) to an aware UTC datetime."""
    if not _EPOCH_MILLIS_RE.fullmatch(value):
        raise MalformedTimestampError(
            f"Invalid timestamp {value!r}: expected milliseconds since epoch"
        )
    try:
        return EPOCH + datetime.timedelta(milliseconds=int(value))
    except (OverflowError, ValueError) as exc:
        raise MalformedTimestampError(f"Timestamp {value!r} is out of range") from exc


class LogStashEventSerializer:
    """Builds LogStash-format documents from events using a fixed configuration."""

    def __init__(self, config: Optional[SerializerConfig] = None) -> None:
        self._config = config if config is not None else SerializerConfig()

    @property
    def config(self) -> SerializerConfig:
        return self._config

    def get_content_builder(self, event: Event) -> DocumentBuilder:
        """Assemble the document for *event*; the builder is ready to serialize."""
        builder = DocumentBuilder().start_object()
        self._append_headers(builder, event)
        return builder.end_object()

    def build_document(self, event: Event) -> bytes:
        return self.get_content_builder(event).to_bytes()

    def _append_headers(self, builder: DocumentBuilder, event: Event) -> None:
        # Working copy; promoted headers are removed so they are not repeated
        headers = dict(event.headers)

        message = headers.get(MESSAGE.header)
        if not is_blank(message) and self._is_unset(headers, MESSAGE):
            self._append_field(builder, MESSAGE.output, message, MESSAGE.header)
            del headers[MESSAGE.header]
        else:
            self._append_field(builder, MESSAGE.output, event.body, BODY)

        timestamp = headers.get(TIMESTAMP.header)
        if not is_blank(timestamp) and self._is_unset(headers, TIMESTAMP):
            builder.field(TIMESTAMP.output, parse_timestamp(timestamp))
            del headers[TIMESTAMP.header]

        for reserved in RESERVED_FIELDS[2:]:
            value = headers.get(reserved.header)
            if not is_blank(value) and self._is_unset(headers, reserved):
                self._append_field(builder, reserved.output, value, reserved.header)
                del headers[reserved.header]

        self._append_custom_fields(builder, headers)

    def _append_custom_fields(self, builder: DocumentBuilder, headers: Mapping[str, str]) -> None:
        prefixed = not self._config.remove_fields_prefix
        if prefixed:
            builder.start_object(FIELDS_CONTAINER)

        # Sorted so the document depends only on the header contents
        items = sorted(headers.items())
        if self._config.collate_objects:
            collated = collate(items, self._config.is_object_field)
            for name, value in collated.items():
                if self._can_write(builder, name):
                    builder.field(name, value)
        else:
            for name, value in items:
                if self._can_write(builder, name):
                    self._append_field(builder, name, value, name)

        if prefixed:
            builder.end_object()

    def _append_field(self, builder: DocumentBuilder, name: str, data, policy_name: str) -> None:
        content = parse_or_scalar(data, self._config.is_object_field(policy_name))
        if isinstance(content, Structured):
            builder.field(name, content.fields)
        else:
            builder.field(name, content.text)

    @staticmethod
    def _is_unset(headers: Mapping[str, str], reserved: ReservedField) -> bool:
        return is_blank(headers.get(reserved.output))

    @staticmethod
    def _can_write(builder: DocumentBuilder, name: str) -> bool:
        if builder.has_field(name):
            logger.warning("Skipping custom field %r: name already used by a reserved field", name)
            return False
        return True


def build_document(event: Event, config: Optional[SerializerConfig] = None) -> bytes:
    """Serialize *event* to LogStash-format JSON bytes."""
    return LogStashEventSerializer(config).build_document(event)
