from __future__ import annotations

import uuid

from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.engine import Dialect
from sqlalchemy.types import CHAR, LargeBinary, TypeDecorator

BLOCK_HASH_LENGTH = 32


def to_block_hash(value: bytes | bytearray | str) -> bytes:
    """Normalise a block hash given as raw bytes or a 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        digits = value[2:] if value[:2].lower() == "0x" else value
        if len(digits) != BLOCK_HASH_LENGTH * 2:
            raise ValueError(f"block hash must be {BLOCK_HASH_LENGTH * 2} hex digits, got {len(digits)}")
        try:
            raw = bytes.fromhex(digits)
        except ValueError as exc:
            raise ValueError(f"block hash is not valid hex: {value!r}") from exc
    else:
        raise ValueError(f"block hash must be bytes or hex string, got {type(value).__name__}")

    if len(raw) != BLOCK_HASH_LENGTH:
        raise ValueError(f"block hash must be {BLOCK_HASH_LENGTH} bytes, got {len(raw)}")
    return raw


class GUID(TypeDecorator):
    """Platform-independent UUID type."""

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(value)
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class BlockHash(TypeDecorator):
    """Fixed 32-byte block hash, stored as bytea / BLOB."""

    impl = LargeBinary(BLOCK_HASH_LENGTH)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return to_block_hash(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return bytes(value)
