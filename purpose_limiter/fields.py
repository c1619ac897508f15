"""
purpose_limiter.fields — Enumerate and rewrite the top-level fields of a response.

The engine only sees MessageField handles, so it does not depend on the
message encoding. Two walkers are provided:

  ProtoFieldWalker    protobuf messages returned by gRPC handlers
  MappingFieldWalker  plain dict payloads (JSON-style responses)

Only top-level, non-repeated fields are visited. Nested messages, repeated
fields, maps and proto2 extensions are reported as FieldKind.OTHER or
skipped, never rewritten.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, MutableMapping
from dataclasses import dataclass
from typing import Any, Protocol

from google.protobuf.descriptor import FieldDescriptor
from google.protobuf.message import Message

from purpose_limiter.models import FieldKind

_INT32_RANGE = (-(2**31), 2**31 - 1)
_INT64_RANGE = (-(2**63), 2**63 - 1)

# Signed integer types only: suppression writes -1.
_INTEGER_RANGES: dict[int, tuple[int, int]] = {
    FieldDescriptor.TYPE_INT32: _INT32_RANGE,
    FieldDescriptor.TYPE_SINT32: _INT32_RANGE,
    FieldDescriptor.TYPE_SFIXED32: _INT32_RANGE,
    FieldDescriptor.TYPE_INT64: _INT64_RANGE,
    FieldDescriptor.TYPE_SINT64: _INT64_RANGE,
    FieldDescriptor.TYPE_SFIXED64: _INT64_RANGE,
}


@dataclass
class MessageField:
    """Handle on one field of a response: name, kind, and read/write access."""

    name: str
    kind: FieldKind
    _getter: Callable[[], Any]
    _setter: Callable[[Any], None]

    def get(self) -> Any:
        return self._getter()

    def set(self, value: Any) -> None:
        self._setter(value)


class FieldWalker(Protocol):
    def supports(self, message: Any) -> bool: ...

    def walk(self, message: Any) -> Iterator[MessageField]: ...


# ---------------------------------------------------------------------------
# Protobuf
# ---------------------------------------------------------------------------


def proto_field_kind(descriptor: FieldDescriptor) -> FieldKind:
    if descriptor.type in _INTEGER_RANGES:
        return FieldKind.INTEGER
    if descriptor.type == FieldDescriptor.TYPE_STRING:
        return FieldKind.STRING
    return FieldKind.OTHER


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


class ProtoFieldWalker:
    """Walks the populated top-level fields of a protobuf message.

    Fields still at their default value are not visited (proto3 presence
    semantics, as returned by Message.ListFields()).
    """

    def supports(self, message: Any) -> bool:
        return isinstance(message, Message)

    def walk(self, message: Message) -> Iterator[MessageField]:
        for descriptor, _ in message.ListFields():
            # Extensions are not attributes of the message; set ones are listed too.
            if descriptor.is_repeated or descriptor.is_extension:
                continue
            yield self._field(message, descriptor)

    def _field(self, message: Message, descriptor: FieldDescriptor) -> MessageField:
        name = descriptor.name
        kind = proto_field_kind(descriptor)
        bounds = _INTEGER_RANGES.get(descriptor.type)

        def _get() -> Any:
            return getattr(message, name)

        def _set(value: Any) -> None:
            if bounds is not None:
                value = _clamp(int(value), bounds)
            setattr(message, name, value)

        return MessageField(name=name, kind=kind, _getter=_get, _setter=_set)


# ---------------------------------------------------------------------------
# Plain mappings
# ---------------------------------------------------------------------------


def value_kind(value: Any) -> FieldKind:
    # bool is a subclass of int but is not an integer field.
    if isinstance(value, bool):
        return FieldKind.OTHER
    if isinstance(value, int):
        return FieldKind.INTEGER
    if isinstance(value, str):
        return FieldKind.STRING
    return FieldKind.OTHER


class MappingFieldWalker:
    """Walks the top-level keys of a mutable mapping."""

    def supports(self, message: Any) -> bool:
        return isinstance(message, MutableMapping)

    def walk(self, message: MutableMapping[str, Any]) -> Iterator[MessageField]:
        # Snapshot the keys; values are replaced while the caller iterates.
        for key in list(message):
            yield self._field(message, key)

    def _field(self, message: MutableMapping[str, Any], key: str) -> MessageField:
        def _get() -> Any:
            return message[key]

        def _set(value: Any) -> None:
            message[key] = value

        return MessageField(
            name=str(key), kind=value_kind(message[key]), _getter=_get, _setter=_set
        )
