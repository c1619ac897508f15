"""
Shared fixtures: a runtime-built protobuf Address message and JWT minting.

The Address message is assembled from a FileDescriptorProto so no generated
_pb2 module has to be checked in:

    message Address {
      int32           houseNumber = 1;
      string          street      = 2;
      string          city        = 3;
      bool            verified    = 4;
      repeated string tags        = 5;
      int64           population  = 6;
      uint32          floor       = 7;
    }

plus a proto2 message carrying an extension:

    message Base {
      optional string street = 1;
      extensions 100 to 199;
    }
    extend Base { optional int32 floor_no = 100; }
"""

from __future__ import annotations

import time
from typing import Any

import jwt
import pytest
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from purpose_limiter.config import LimiterSettings

SECRET = "purpose-limiter-test-secret-0123456789abcdef"  # pragma: allowlist secret
ISSUER = "test"
SUBJECT = "analyst-001"
PACKAGE = "purpose_limiter_test"

_F = descriptor_pb2.FieldDescriptorProto
_ADDRESS_FIELDS = [
    ("houseNumber", _F.TYPE_INT32, _F.LABEL_OPTIONAL),
    ("street", _F.TYPE_STRING, _F.LABEL_OPTIONAL),
    ("city", _F.TYPE_STRING, _F.LABEL_OPTIONAL),
    ("verified", _F.TYPE_BOOL, _F.LABEL_OPTIONAL),
    ("tags", _F.TYPE_STRING, _F.LABEL_REPEATED),
    ("population", _F.TYPE_INT64, _F.LABEL_OPTIONAL),
    ("floor", _F.TYPE_UINT32, _F.LABEL_OPTIONAL),
]

_POOL = descriptor_pool.DescriptorPool()


def _build_address_class() -> type:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=f"{PACKAGE}/address.proto", package=PACKAGE, syntax="proto3"
    )
    message = file_proto.message_type.add(name="Address")
    for number, (name, field_type, label) in enumerate(_ADDRESS_FIELDS, start=1):
        message.field.add(name=name, number=number, type=field_type, label=label)
    _POOL.AddSerializedFile(file_proto.SerializeToString())
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.Address"))


Address = _build_address_class()


def _build_base_class() -> tuple[type, Any]:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=f"{PACKAGE}/base.proto", package=PACKAGE, syntax="proto2"
    )
    message = file_proto.message_type.add(name="Base")
    message.field.add(name="street", number=1, type=_F.TYPE_STRING, label=_F.LABEL_OPTIONAL)
    message.extension_range.add(start=100, end=200)
    file_proto.extension.add(
        name="floor_no",
        number=100,
        type=_F.TYPE_INT32,
        label=_F.LABEL_OPTIONAL,
        extendee=f".{PACKAGE}.Base",
    )
    _POOL.AddSerializedFile(file_proto.SerializeToString())
    classes = message_factory.GetMessageClassesForFiles([file_proto.name], _POOL)
    return classes[f"{PACKAGE}.Base"], _POOL.FindExtensionByName(f"{PACKAGE}.floor_no")


Base, FLOOR_NO = _build_base_class()


def _mint_token(
    policy: Any = None,
    *,
    key: Any = SECRET,
    algorithm: str = "HS256",
    **overrides: Any,
) -> str:
    """Sign a credential. Pass a claim as None to leave it out."""
    now = int(time.time())
    payload: dict[str, Any] = {
        "iss": ISSUER,
        "sub": SUBJECT,
        "iat": now,
        "exp": now + 3600,
        "policy": policy if policy is not None else {},
    }
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, key, algorithm=algorithm)


@pytest.fixture
def address_cls() -> type:
    return Address


@pytest.fixture
def mint_token():
    return _mint_token


@pytest.fixture
def settings() -> LimiterSettings:
    return LimiterSettings(shared_secret=SECRET, issuer=ISSUER, algorithms=("HS256",))


@pytest.fixture
def baker_street(address_cls):
    return address_cls(
        houseNumber=135,
        street="Baker Street",
        city="London",
        verified=True,
        tags=["residential", "historic"],
        population=8_800_000,
        floor=2,
    )


@pytest.fixture
def address_policy() -> dict[str, Any]:
    """The credential policy of the Baker Street walkthrough."""
    return {
        "allowed": {},
        "generalized": {"houseNumber": ""},
        "noised": {},
        "reduced": {"street": ""},
    }


@pytest.fixture
def extended_base():
    """A proto2 Base with street set and the floor_no extension set to 135."""
    message = Base(street="Baker Street")
    message.Extensions[FLOOR_NO] = 135
    return message


@pytest.fixture
def floor_no():
    return FLOOR_NO
