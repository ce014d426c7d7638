#!/usr/bin/env python3
"""
byte_reader.py - Positioned reader over an in-memory byte source

Provides the primitive reads the mapping engine needs: fixed-width
integers, floats, raw byte runs and fixed or null-terminated strings,
all relative to a movable cursor, plus ``*_at`` variants that read at an
absolute offset without touching the cursor.

Usage:
    from byte_reader import ByteReader

    reader = ByteReader(data, byte_order='little')
    magic = reader.read_next_uint(4)
    name = reader.read_cstring_at(0x40)
"""

import struct
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from mapping_errors import DecodeError


class PrimitiveKind(Enum):
    UNSIGNED = 'unsigned'
    SIGNED = 'signed'
    FLOAT = 'float'
    BOOL = 'bool'
    BYTES = 'bytes'
    STRING = 'string'
    CSTRING = 'cstring'
    UNDEFINED = 'undefined'


# Map primitive type names to (kind, size_bytes); size None = needs a length
TYPE_MAP: Dict[str, Tuple[PrimitiveKind, Optional[int]]] = {
    'u8': (PrimitiveKind.UNSIGNED, 1),
    'u16': (PrimitiveKind.UNSIGNED, 2),
    'u24': (PrimitiveKind.UNSIGNED, 3),
    'u32': (PrimitiveKind.UNSIGNED, 4),
    'u64': (PrimitiveKind.UNSIGNED, 8),
    's8': (PrimitiveKind.SIGNED, 1),
    's16': (PrimitiveKind.SIGNED, 2),
    's24': (PrimitiveKind.SIGNED, 3),
    's32': (PrimitiveKind.SIGNED, 4),
    's64': (PrimitiveKind.SIGNED, 8),
    'f32': (PrimitiveKind.FLOAT, 4),
    'f64': (PrimitiveKind.FLOAT, 8),
    'bool': (PrimitiveKind.BOOL, 1),
    'undefined': (PrimitiveKind.UNDEFINED, 1),
    'bytes': (PrimitiveKind.BYTES, None),
    'ascii': (PrimitiveKind.STRING, None),
    'utf8': (PrimitiveKind.STRING, None),
    'cstring': (PrimitiveKind.CSTRING, None),
}

# Aliases accepted in layout documents
TYPE_ALIASES = {
    'i8': 's8', 'i16': 's16', 'i24': 's24', 'i32': 's32', 'i64': 's64',
    'uint8': 'u8', 'uint16': 'u16', 'uint32': 'u32', 'uint64': 'u64',
    'int8': 's8', 'int16': 's16', 'int32': 's32', 'int64': 's64',
    'byte': 'u8', 'string': 'ascii',
}


def canonical_type(data_type: str) -> str:
    """Resolve type aliases (i32 -> s32, string -> ascii)."""
    return TYPE_ALIASES.get(data_type, data_type)


def primitive_info(data_type: str) -> Optional[Tuple[PrimitiveKind, Optional[int]]]:
    """Return (kind, size) for a primitive type name, or None."""
    if data_type is None:
        return None
    return TYPE_MAP.get(canonical_type(data_type))


class ByteReader:
    """Cursor-based reader over bytes, bytearray or memoryview data."""

    def __init__(self, data: Union[bytes, bytearray, memoryview],
                 byte_order: str = 'little', encoding: str = 'utf-8'):
        if byte_order not in ('little', 'big'):
            raise ValueError(f"Unknown byte order: {byte_order}")
        self._data = bytes(data)
        self.byte_order = byte_order
        self.encoding = encoding
        self._pos = 0

    def __len__(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        return self._pos

    @position.setter
    def position(self, offset: int):
        if offset < 0 or offset > len(self._data):
            raise DecodeError("Position outside byte source", offset)
        self._pos = offset

    def clone(self, offset: int = None) -> 'ByteReader':
        """Independent reader over the same data (own cursor)."""
        other = ByteReader(self._data, self.byte_order, self.encoding)
        other._pos = self._pos if offset is None else offset
        return other

    def has_more(self, count: int = 1) -> bool:
        return self._pos + count <= len(self._data)

    # ------------------------------------------------------------------
    # Absolute reads
    # ------------------------------------------------------------------

    def read_bytes_at(self, offset: int, length: int) -> bytes:
        if length < 0:
            raise DecodeError(f"Negative read length {length}", offset)
        if offset < 0 or offset + length > len(self._data):
            raise DecodeError(
                f"Buffer too short: need {length} bytes, have {max(len(self._data) - offset, 0)}",
                offset)
        return self._data[offset:offset + length]

    def read_int_at(self, offset: int, size: int, signed: bool = False) -> int:
        data = self.read_bytes_at(offset, size)
        return int.from_bytes(data, self.byte_order, signed=signed)

    def read_float_at(self, offset: int, size: int) -> float:
        if size not in (4, 8):
            raise DecodeError(f"Unsupported float size {size}", offset)
        data = self.read_bytes_at(offset, size)
        fmt = ('<' if self.byte_order == 'little' else '>') + ('f' if size == 4 else 'd')
        return struct.unpack(fmt, data)[0]

    def read_string_at(self, offset: int, length: int, encoding: str = None) -> str:
        """Fixed-length string; trailing NULs are stripped."""
        data = self.read_bytes_at(offset, length)
        try:
            return data.rstrip(b'\x00').decode(encoding or self.encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid string data: {e.reason}", offset) from e

    def read_cstring_at(self, offset: int, max_length: int = None,
                        encoding: str = None) -> str:
        """Null-terminated string starting at offset."""
        if offset < 0 or offset > len(self._data):
            raise DecodeError("String offset outside byte source", offset)
        limit = len(self._data) if max_length is None else min(len(self._data), offset + max_length)
        end = self._data.find(b'\x00', offset, limit)
        if end < 0:
            raise DecodeError("Unterminated string", offset)
        try:
            return self._data[offset:end].decode(encoding or self.encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid string data: {e.reason}", offset) from e

    # ------------------------------------------------------------------
    # Cursor reads
    # ------------------------------------------------------------------

    def read_next_bytes(self, length: int) -> bytes:
        data = self.read_bytes_at(self._pos, length)
        self._pos += length
        return data

    def read_next_uint(self, size: int) -> int:
        value = self.read_int_at(self._pos, size, signed=False)
        self._pos += size
        return value

    def read_next_int(self, size: int) -> int:
        value = self.read_int_at(self._pos, size, signed=True)
        self._pos += size
        return value

    def read_next_float(self, size: int) -> float:
        value = self.read_float_at(self._pos, size)
        self._pos += size
        return value

    def read_next_string(self, length: int, encoding: str = None) -> str:
        value = self.read_string_at(self._pos, length, encoding)
        self._pos += length
        return value

    def read_next_cstring(self, max_length: int = None, encoding: str = None) -> str:
        value = self.read_cstring_at(self._pos, max_length, encoding)
        # Terminator is consumed along with the characters
        self._pos = self._data.index(b'\x00', self._pos) + 1
        return value

    def read_next_value(self, data_type: str, length: int = -1,
                        signed: Optional[bool] = None):
        """
        Read one primitive value at the cursor.

        Args:
            data_type: Primitive type name (u16, s32, f32, ascii, ...)
            length: Explicit length; required for bytes/ascii/utf8
            signed: Override the signedness implied by the type name

        Returns:
            Decoded value (int, float, bool, bytes or str)
        """
        info = primitive_info(data_type)
        if info is None:
            raise DecodeError(f"Unknown primitive type: {data_type}", self._pos)
        kind, size = info
        if length is not None and length > 0:
            size = length

        if kind in (PrimitiveKind.UNSIGNED, PrimitiveKind.SIGNED):
            is_signed = kind == PrimitiveKind.SIGNED if signed is None else signed
            return self.read_next_int(size) if is_signed else self.read_next_uint(size)
        if kind == PrimitiveKind.FLOAT:
            return self.read_next_float(size)
        if kind == PrimitiveKind.BOOL:
            return self.read_next_uint(size) != 0
        if kind == PrimitiveKind.CSTRING:
            return self.read_next_cstring(size)
        if size is None:
            raise DecodeError(f"Type '{data_type}' requires a length", self._pos)
        if kind == PrimitiveKind.STRING:
            encoding = 'ascii' if canonical_type(data_type) == 'ascii' else 'utf-8'
            return self.read_next_string(size, encoding)
        return self.read_next_bytes(size)
