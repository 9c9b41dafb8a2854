"""Shared pytest fixtures for the logstash-event-serializer test suite."""

import pytest

from logstash_serializer.config import SerializerConfig
from logstash_serializer.models import create_event

# 1213141516 ms after the epoch
TIMESTAMP_MS = "1213141516"
TIMESTAMP_ISO = "1970-01-15T00:59:01.516Z"


@pytest.fixture()
def standard_headers() -> dict:
    """Headers carrying every reserved field plus two custom ones."""
    return {
        "timestamp": TIMESTAMP_MS,
        "source": "flume_tail_src",
        "host": "test@localhost",
        "src_path": "/tmp/test",
        "headerNameOne": "headerValueOne",
        "headerNameTwo": "headerValueTwo",
        "type": "sometype",
    }


@pytest.fixture()
def standard_event(standard_headers):
    return create_event("test body", standard_headers)


@pytest.fixture()
def collated_headers() -> dict:
    return {
        "timestamp": TIMESTAMP_MS,
        "params.cmd": "api.call",
        "params.email": "my@gmail.com",
        "params.timer.start": "1",
        "params.timer.end": "2",
    }


@pytest.fixture()
def default_config() -> SerializerConfig:
    return SerializerConfig()


@pytest.fixture()
def collating_config() -> SerializerConfig:
    return SerializerConfig.from_context(
        {"objectFields": "params, anotherField", "collateObjects": "true"}
    )
