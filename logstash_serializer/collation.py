"""Collates dot-notated header names into nested objects.

``params.cmd`` and ``params.timer.start`` end up as
``{"params": {"cmd": ..., "timer": {"start": ...}}}``.  The accumulator is a
small tree of :class:`Leaf` and :class:`ObjectNode` values; conflicts between a
value and a path prefix of the same name are resolved as follows:

* a scalar already sitting at a path head wins; the dotted key is then kept
  literally (``"params.cmd"``) beside it,
* a nested object already sitting at a leaf name wins over a later scalar,
  unless the name is an object field whose value parses, in which case the
  parsed fields are merged into the existing object.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from logstash_serializer.content_parser import try_parse

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "."


@dataclass
class Leaf:
    value: Any


@dataclass
class ObjectNode:
    children: dict = field(default_factory=dict)

    def merge(self, parsed: dict) -> None:
        """Overlay parsed top-level fields onto this object."""
        for key, value in parsed.items():
            self.children[key] = from_parsed(value)

    def to_plain(self) -> dict:
        plain: dict = {}
        pending = [(self, plain)]
        while pending:
            node, target = pending.pop()
            for name, child in node.children.items():
                if isinstance(child, ObjectNode):
                    target[name] = {}
                    pending.append((child, target[name]))
                else:
                    target[name] = child.value
        return plain


def from_parsed(value: Any):
    """Turn a parsed value into a node; nested mappings become ObjectNodes."""
    if not isinstance(value, dict):
        return Leaf(value)
    root = ObjectNode()
    pending = [(root, value)]
    while pending:
        node, parsed = pending.pop()
        for key, item in parsed.items():
            if isinstance(item, dict):
                child = ObjectNode()
                pending.append((child, item))
            else:
                child = Leaf(item)
            node.children[key] = child
    return root


def collect(
    key: str,
    value: str,
    fields: ObjectNode,
    is_object_field: Callable[[str], bool],
) -> None:
    """Place one header into the accumulator *fields*, one path segment at a time."""
    node = fields
    pos = key.find(PATH_SEPARATOR)
    while pos > 0:
        head = key[:pos]
        child = node.children.get(head)
        if child is None:
            child = ObjectNode()
            node.children[head] = child
        if isinstance(child, Leaf):
            logger.debug("Field %r is a scalar; keeping %r as a flat field", head, key)
            node.children[key] = Leaf(value)
            return
        node, key = child, key[pos + 1:]
        pos = key.find(PATH_SEPARATOR)

    existing = node.children.get(key)
    if isinstance(existing, ObjectNode):
        if is_object_field(key):
            parsed = try_parse(value)
            if parsed is not None:
                existing.merge(parsed)
                return
        logger.debug("Field %r already holds an object; dropping scalar value", key)
        return

    if is_object_field(key):
        parsed = try_parse(value)
        if parsed is not None:
            node.children[key] = from_parsed(parsed)
            return
    node.children[key] = Leaf(value)


def collate(
    items: Iterable[tuple[str, str]],
    is_object_field: Callable[[str], bool],
) -> dict:
    """Collate (name, value) pairs, in the given order, into a plain nested dict."""
    root = ObjectNode()
    for key, value in items:
        collect(key, value, root, is_object_field)
    return root.to_plain()
