"""Tests for structured content detection and parsing."""

import pytest

from logstash_serializer.content_parser import (
    ContentFormat,
    ContentParseError,
    MAX_CONTENT_DEPTH,
    Scalar,
    Structured,
    detect,
    parse,
    parse_or_scalar,
    try_parse,
)

PARAMS = '{"cmd":"api.method","email":"my@gmail.com"}'
SELF_REFERENCING_YAML = "---\na: &x\n  - *x\n"


def _nested_json(levels: int) -> str:
    return "{\"k\":" * levels + "\"leaf\"" + "}" * levels


class TestDetect:
    def test_json_object(self):
        assert detect(PARAMS) is ContentFormat.JSON

    def test_json_with_leading_whitespace(self):
        assert detect(" \n\t" + PARAMS) is ContentFormat.JSON

    def test_json_bytes(self):
        assert detect(PARAMS.encode("utf-8")) is ContentFormat.JSON

    def test_yaml_document(self):
        assert detect("---\nkey: value\n") is ContentFormat.YAML

    def test_plain_text(self):
        assert detect("test body") is None
        assert detect("") is None
        assert detect("[1, 2]") is None

    def test_detects_malformed_json_too(self):
        # Detection looks at structure only
        assert detect("{flume: somethingnotvalid}") is ContentFormat.JSON


class TestParse:
    def test_valid_json(self):
        assert parse(PARAMS, ContentFormat.JSON) == {"cmd": "api.method", "email": "my@gmail.com"}

    def test_nested_json(self):
        data = '{"cmd":"api.method", "nested" : { "sub" : 1 }}'
        assert parse(data, ContentFormat.JSON) == {"cmd": "api.method", "nested": {"sub": 1}}

    def test_malformed_json_raises(self):
        with pytest.raises(ContentParseError):
            parse("{flume: somethingnotvalid}", ContentFormat.JSON)

    def test_non_mapping_raises(self):
        with pytest.raises(ContentParseError):
            parse("[1, 2]", ContentFormat.JSON)

    def test_non_finite_numbers_rejected(self):
        with pytest.raises(ContentParseError):
            parse('{"ratio": NaN}', ContentFormat.JSON)

    def test_yaml_mapping(self):
        assert parse("---\ncmd: api.call\ncount: 2\n", ContentFormat.YAML) == {
            "cmd": "api.call",
            "count": 2,
        }

    def test_yaml_scalar_raises(self):
        with pytest.raises(ContentParseError):
            parse("---\njust text\n", ContentFormat.YAML)

    def test_malformed_yaml_raises(self):
        with pytest.raises(ContentParseError):
            parse("---\nkey: [unclosed\n", ContentFormat.YAML)

    def test_yaml_keys_become_strings(self):
        assert parse("---\n1: one\n", ContentFormat.YAML) == {"1": "one"}

    def test_content_parse_error_is_value_error(self):
        assert issubclass(ContentParseError, ValueError)


class TestTryParse:
    def test_returns_mapping(self):
        assert try_parse(PARAMS) == {"cmd": "api.method", "email": "my@gmail.com"}

    def test_plain_text_returns_none(self):
        assert try_parse("headerValueOne") is None

    def test_malformed_returns_none(self):
        assert try_parse("{flume: somethingnotvalid}") is None
        assert try_parse("{") is None

    def test_bytes_input(self):
        assert try_parse(b'{"a": "b"}') == {"a": "b"}


class TestParseOrScalar:
    def test_structured_when_allowed(self):
        assert parse_or_scalar(PARAMS, allow_object=True) == Structured(
            {"cmd": "api.method", "email": "my@gmail.com"}
        )

    def test_scalar_when_not_allowed(self):
        assert parse_or_scalar(PARAMS, allow_object=False) == Scalar(PARAMS)

    def test_malformed_falls_back_to_text(self):
        raw = "{flume: somethingnotvalid}"
        assert parse_or_scalar(raw, allow_object=True) == Scalar(raw)

    def test_bytes_decoded(self):
        assert parse_or_scalar(b"test body", allow_object=False) == Scalar("test body")

    def test_invalid_utf8_replaced(self):
        result = parse_or_scalar(b"bad \xff byte", allow_object=False)
        assert result == Scalar("bad \ufffd byte")


class TestNesting:
    def test_accepts_content_at_depth_limit(self):
        result = parse(_nested_json(MAX_CONTENT_DEPTH), ContentFormat.JSON)
        for _ in range(MAX_CONTENT_DEPTH - 1):
            result = result["k"]
        assert result == {"k": "leaf"}

    def test_rejects_content_past_depth_limit(self):
        with pytest.raises(ContentParseError):
            parse(_nested_json(MAX_CONTENT_DEPTH + 1), ContentFormat.JSON)

    def test_self_referencing_yaml_raises_parse_error(self):
        with pytest.raises(ContentParseError):
            parse(SELF_REFERENCING_YAML, ContentFormat.YAML)

    @pytest.mark.parametrize("value", [
        SELF_REFERENCING_YAML,
        _nested_json(700),
        _nested_json(5000),
    ])
    def test_try_parse_returns_none(self, value):
        assert try_parse(value) is None

    def test_deep_content_falls_back_to_text(self):
        raw = _nested_json(700)
        assert parse_or_scalar(raw, allow_object=True) == Scalar(raw)
