"""
Credential record and its canonical serialization.

The signature is computed over the exact bytes produced by serialize(), so
key order, key names, separators and number formatting are all part of the
protocol. The wire names differ from the attribute names (``user_id``,
``ctime``, ``expire``) because they are what the platform expects.
"""

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from rtctoken.config import PROTOCOL_VERSION
from rtctoken.errors import InvalidArgument, TokenMalformed

MAX_APP_ID = 2**63 - 1

# (wire name, attribute name) in canonical order
CANONICAL_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("version", "version"),
    ("app_id", "app_id"),
    ("user_id", "subject_id"),
    ("nonce", "nonce"),
    ("ctime", "issued_at"),
    ("expire", "expire_at"),
    ("payload", "payload"),
)

WIRE_KEYS: Tuple[str, ...] = tuple(wire for wire, _ in CANONICAL_FIELDS)


def _is_int(value: Any) -> bool:
    # bool is an int subclass, and True must not pass as app_id 1
    return isinstance(value, int) and not isinstance(value, bool)


def _require_utf8(name: str, value: str) -> None:
    # lone surrogates survive json.dumps but cannot be encoded for signing
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidArgument(f"{name} is not valid UTF-8 text") from e


@dataclass(frozen=True)
class CredentialRecord:
    """
    The signed fields of one credential.

    Built fresh for every issuance and immutable afterwards.

    Attributes:
        version: Protocol generation tag ("04").
        app_id: Tenant application ID on the RTC platform.
        subject_id: Identity the credential authorizes.
        nonce: Per-issuance random value.
        issued_at: Unix timestamp of construction.
        expire_at: Unix timestamp after which the credential is dead.
        payload: Opaque authorization scope, usually compact JSON. May be empty.
    """

    version: str
    app_id: int
    subject_id: str
    nonce: int
    issued_at: int
    expire_at: int
    payload: str = ""

    def __post_init__(self):
        if not isinstance(self.version, str) or not self.version:
            raise InvalidArgument("version must be a non-empty string")
        if not _is_int(self.app_id):
            raise InvalidArgument(
                f"app_id must be an integer, got {type(self.app_id).__name__}"
            )
        if not 0 < self.app_id <= MAX_APP_ID:
            raise InvalidArgument("app_id must be a positive 64-bit integer")
        if not isinstance(self.subject_id, str) or not self.subject_id:
            raise InvalidArgument("subject_id must be a non-empty string")
        _require_utf8("subject_id", self.subject_id)
        if not _is_int(self.nonce) or self.nonce < 0:
            raise InvalidArgument("nonce must be a non-negative integer")
        if not _is_int(self.issued_at) or not _is_int(self.expire_at):
            raise InvalidArgument("issued_at and expire_at must be integers")
        if self.expire_at <= self.issued_at:
            raise InvalidArgument("expire_at must be later than issued_at")
        if not isinstance(self.payload, str):
            raise InvalidArgument("payload must be a string")
        _require_utf8("payload", self.payload)
        _require_utf8("version", self.version)

    @property
    def ttl_seconds(self) -> int:
        return self.expire_at - self.issued_at

    def to_wire_dict(self) -> Dict[str, Any]:
        """Fields keyed by wire name, in canonical order."""
        return {wire: getattr(self, attr) for wire, attr in CANONICAL_FIELDS}

    def to_canonical_bytes(self) -> bytes:
        return serialize(self)


def serialize(record: CredentialRecord) -> bytes:
    """Render a record to the exact bytes that get signed."""
    return json.dumps(
        record.to_wire_dict(), separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


class _Pairs(list):
    """Key/value pairs of a JSON object, in document order."""


def parse(data: bytes) -> CredentialRecord:
    """
    Parse canonical bytes back into a record.

    This is strict: the key set, key order and value types must match what
    serialize() produces.

    Raises:
        TokenMalformed: If the bytes are not a canonical record.
    """
    try:
        pairs = json.loads(data.decode("utf-8"), object_pairs_hook=_Pairs)
    except (UnicodeDecodeError, ValueError) as e:
        raise TokenMalformed(f"Record is not valid JSON: {e}") from e

    if not isinstance(pairs, _Pairs):
        raise TokenMalformed("Record is not a JSON object")

    keys = tuple(key for key, _ in pairs)
    if keys != WIRE_KEYS:
        raise TokenMalformed(f"Record keys {list(keys)} do not match {list(WIRE_KEYS)}")

    fields = dict(pairs)
    for wire in ("app_id", "nonce", "ctime", "expire"):
        if not _is_int(fields[wire]):
            raise TokenMalformed(f"Record field '{wire}' is not an integer")
    for wire in ("version", "user_id", "payload"):
        if not isinstance(fields[wire], str):
            raise TokenMalformed(f"Record field '{wire}' is not a string")

    try:
        return CredentialRecord(**{attr: fields[wire] for wire, attr in CANONICAL_FIELDS})
    except InvalidArgument as e:
        raise TokenMalformed(f"Record fields are invalid: {e}") from e


def build_record(
    app_id: int,
    subject_id: str,
    nonce: int,
    issued_at: int,
    ttl_seconds: int,
    payload: str = "",
    version: str = PROTOCOL_VERSION,
) -> CredentialRecord:
    """Construct a record with ``expire_at = issued_at + ttl_seconds``."""
    return CredentialRecord(
        version=version,
        app_id=app_id,
        subject_id=subject_id,
        nonce=nonce,
        issued_at=issued_at,
        expire_at=issued_at + ttl_seconds,
        payload=payload,
    )


# =============================================================================
# Room Authorization Payload
# =============================================================================


class Privilege(IntEnum):
    """Room privileges understood by the RTC platform."""

    LOGIN_ROOM = 1
    PUBLISH_STREAM = 2


def room_payload(
    room_id: str,
    privileges: Optional[Mapping[Privilege, bool]] = None,
    stream_ids: Optional[Iterable[str]] = None,
) -> str:
    """
    Build the compact JSON payload that restricts a credential to one room.

    Args:
        room_id: The room the holder may join.
        privileges: Privilege -> allowed. Defaults to login and publish.
        stream_ids: Optional whitelist of stream IDs the holder may publish.

    Returns:
        e.g. '{"room_id":"r1","privilege":{"1":1,"2":1},"stream_id_list":null}'
    """
    if not isinstance(room_id, str) or not room_id:
        raise InvalidArgument("room_id is required")
    _require_utf8("room_id", room_id)
    if stream_ids is not None:
        stream_ids = list(stream_ids)
        for stream_id in stream_ids:
            if not isinstance(stream_id, str):
                raise InvalidArgument("stream_ids must be strings")
            _require_utf8("stream_id", stream_id)

    if privileges is None:
        privileges = {Privilege.LOGIN_ROOM: True, Privilege.PUBLISH_STREAM: True}

    body = {
        "room_id": room_id,
        "privilege": {str(int(p)): 1 if allowed else 0 for p, allowed in sorted(privileges.items())},
        "stream_id_list": stream_ids,
    }
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)
