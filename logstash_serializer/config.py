"""Serializer configuration: frozen dataclass built from a host context, env vars, or YAML."""

import os
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

# Context keys understood by the serializer
OBJECT_FIELDS = "objectFields"
REMOVE_FIELDS_PREFIX = "removeFieldsPrefix"
COLLATE_OBJECTS = "collateObjects"
COLLATE_DEPTH = "collateDepth"
GENERATE_ID = "generateId"
DIGEST_ALGORITHM = "digestAlgorithm"

# Environment variable -> context key
_ENV_KEYS = {
    "OBJECT_FIELDS": OBJECT_FIELDS,
    "REMOVE_FIELDS_PREFIX": REMOVE_FIELDS_PREFIX,
    "COLLATE_OBJECTS": COLLATE_OBJECTS,
    "COLLATE_DEPTH": COLLATE_DEPTH,
    "GENERATE_ID": GENERATE_ID,
    "DIGEST_ALGORITHM": DIGEST_ALGORITHM,
}


def _parse_bool(value) -> bool:
    return str(value).strip().lower() in ("true", "1")


def _parse_object_fields(value) -> frozenset:
    if isinstance(value, (list, tuple, set, frozenset)):
        names = [str(v) for v in value]
    else:
        names = str(value).split(",")
    return frozenset(name.strip() for name in names if name.strip())


def _parse_depth(value) -> Optional[int]:
    try:
        return int(str(value).strip())
    except ValueError:
        logger.warning("Ignoring invalid %s value %r", COLLATE_DEPTH, value)
        return None


def _is_set(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


@dataclass(frozen=True)
class SerializerConfig:
    object_fields: frozenset = field(default_factory=frozenset)
    remove_fields_prefix: bool = False
    collate_objects: bool = False
    # Accepted for compatibility; collation depth is never limited.
    collate_depth: Optional[int] = None
    generate_id: bool = False
    digest_algorithm: str = "sha256"

    def is_object_field(self, name: Optional[str]) -> bool:
        return name is not None and name in self.object_fields

    @classmethod
    def from_context(cls, context: Mapping) -> "SerializerConfig":
        """Build a config from a flat key/value context (blank values mean unset)."""
        kwargs: dict = {}
        if _is_set(context.get(OBJECT_FIELDS)):
            kwargs["object_fields"] = _parse_object_fields(context[OBJECT_FIELDS])
        if _is_set(context.get(REMOVE_FIELDS_PREFIX)):
            kwargs["remove_fields_prefix"] = _parse_bool(context[REMOVE_FIELDS_PREFIX])
        if _is_set(context.get(COLLATE_OBJECTS)):
            kwargs["collate_objects"] = _parse_bool(context[COLLATE_OBJECTS])
        if _is_set(context.get(COLLATE_DEPTH)):
            kwargs["collate_depth"] = _parse_depth(context[COLLATE_DEPTH])
        if _is_set(context.get(GENERATE_ID)):
            kwargs["generate_id"] = _parse_bool(context[GENERATE_ID])
        if _is_set(context.get(DIGEST_ALGORITHM)):
            kwargs["digest_algorithm"] = str(context[DIGEST_ALGORITHM]).strip().lower()
        return cls(**kwargs)


def load_yaml_config(path: Optional[str]) -> dict:
    """Read the serializer's YAML file into a dict.

    Anything other than a readable top-level mapping yields an empty dict,
    so the defaults apply.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as stream:
            document = yaml.safe_load(stream)
    except FileNotFoundError:
        logger.warning("Serializer config %s does not exist; keeping defaults", path)
        return {}
    if document is None:
        return {}
    if not isinstance(document, dict):
        logger.warning(
            "Serializer config %s holds a %s, not a mapping; keeping defaults",
            path, type(document).__name__,
        )
        return {}
    logger.info("Read serializer settings from %s", path)
    return document


def load_config(
    path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> SerializerConfig:
    """Build SerializerConfig from defaults <- YAML ``serializer`` section <- env vars."""
    if environ is None:
        environ = os.environ
    if path is None:
        path = environ.get("SERIALIZER_CONFIG")

    section = load_yaml_config(path).get("serializer")
    if section is not None and not isinstance(section, dict):
        logger.warning("Ignoring 'serializer' section of %s: not a mapping", path)
        section = None
    context = dict(section or {})
    for env_name, key in _ENV_KEYS.items():
        if env_name in environ:
            context[key] = environ[env_name]

    return SerializerConfig.from_context(context)
