"""Serializes events (body + string headers) into LogStash-format documents."""

from logstash_serializer.config import SerializerConfig, load_config
from logstash_serializer.document_id import DocumentId, document_id
from logstash_serializer.models import Event, create_event
from logstash_serializer.serializer import LogStashEventSerializer, build_document

__all__ = [
    "DocumentId",
    "Event",
    "LogStashEventSerializer",
    "SerializerConfig",
    "build_document",
    "create_event",
    "document_id",
    "load_config",
]
