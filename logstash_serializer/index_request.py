"""Pairs serialized documents with their daily target index and optional id."""

import datetime
from dataclasses import dataclass
from typing import Optional

from logstash_serializer.config import SerializerConfig
from logstash_serializer.document_id import document_id
from logstash_serializer.models import Event
from logstash_serializer.serializer import (
    TIMESTAMP,
    LogStashEventSerializer,
    is_blank,
    parse_timestamp,
)

DEFAULT_INDEX_PREFIX = "flume"
DEFAULT_INDEX_TYPE = "log"
INDEX_DATE_FORMAT = "%Y.%m.%d"


@dataclass(frozen=True)
class IndexRequest:
    index: str
    doc_type: str
    source: bytes
    id: Optional[str] = None


def event_time(event: Event, now: Optional[datetime.datetime] = None) -> datetime.datetime:
    """Event time from the ``timestamp`` or ``@timestamp`` header, else *now*."""
    for name in (TIMESTAMP.header, TIMESTAMP.output):
        value = event.headers.get(name)
        if not is_blank(value):
            return parse_timestamp(value)
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    return now


def index_name(prefix: str, event: Event, now: Optional[datetime.datetime] = None) -> str:
    """Daily index name, e.g. ``flume-2026.10.17`` (UTC)."""
    when = event_time(event, now).astimezone(datetime.timezone.utc)
    return f"{prefix}-{when.strftime(INDEX_DATE_FORMAT)}"


class IndexRequestFactory:
    """Builds :class:`IndexRequest` values for a fixed serializer configuration."""

    def __init__(self, config: Optional[SerializerConfig] = None) -> None:
        self._serializer = LogStashEventSerializer(config)

    @property
    def config(self) -> SerializerConfig:
        return self._serializer.config

    def create_index_request(
        self,
        event: Event,
        index_prefix: str = DEFAULT_INDEX_PREFIX,
        index_type: str = DEFAULT_INDEX_TYPE,
        now: Optional[datetime.datetime] = None,
    ) -> IndexRequest:
        source = self._serializer.build_document(event)
        doc_id = None
        if self.config.generate_id:
            doc_id = document_id(source, self.config.digest_algorithm).value
        return IndexRequest(
            index=index_name(index_prefix, event, now),
            doc_type=index_type,
            source=source,
            id=doc_id,
        )
