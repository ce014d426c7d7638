"""
Tests for ByteReader primitive reads.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from byte_reader import ByteReader, PrimitiveKind, canonical_type, primitive_info
from mapping_errors import DecodeError


class TestTypeNames:

    def test_aliases(self):
        assert canonical_type('i32') == 's32'
        assert canonical_type('uint16') == 'u16'
        assert canonical_type('string') == 'ascii'
        assert canonical_type('u8') == 'u8'

    def test_primitive_info(self):
        assert primitive_info('u24') == (PrimitiveKind.UNSIGNED, 3)
        assert primitive_info('int8') == (PrimitiveKind.SIGNED, 1)
        assert primitive_info('bytes') == (PrimitiveKind.BYTES, None)
        assert primitive_info('Header') is None
        assert primitive_info(None) is None


class TestIntegers:

    def test_little_endian(self):
        reader = ByteReader(bytes([0x34, 0x12, 0xFE, 0xFF]))
        assert reader.read_next_uint(2) == 0x1234
        assert reader.read_next_int(2) == -2
        assert reader.position == 4

    def test_big_endian(self):
        reader = ByteReader(bytes([0x12, 0x34]), byte_order='big')
        assert reader.read_next_uint(2) == 0x1234

    def test_u24(self):
        reader = ByteReader(bytes([0x01, 0x02, 0x03]))
        assert reader.read_next_value('u24') == 0x030201

    def test_signed_override(self):
        reader = ByteReader(bytes([0xFF]))
        assert reader.read_next_value('u8', signed=True) == -1

    def test_absolute_read_keeps_cursor(self):
        reader = ByteReader(bytes([1, 2, 3, 4]))
        assert reader.read_int_at(2, 2) == 0x0403
        assert reader.position == 0

    def test_unknown_byte_order(self):
        with pytest.raises(ValueError):
            ByteReader(b'', byte_order='middle')


class TestFloatsAndBools:

    def test_f32(self):
        reader = ByteReader(bytes([0x00, 0x00, 0x80, 0x3F]))
        assert reader.read_next_value('f32') == 1.0

    def test_f64_big_endian(self):
        reader = ByteReader(bytes([0x40, 0x00, 0, 0, 0, 0, 0, 0]), byte_order='big')
        assert reader.read_next_value('f64') == 2.0

    def test_odd_float_size(self):
        with pytest.raises(DecodeError, match="Unsupported float size"):
            ByteReader(bytes(3)).read_float_at(0, 3)

    def test_bool(self):
        reader = ByteReader(bytes([0, 7]))
        assert reader.read_next_value('bool') is False
        assert reader.read_next_value('bool') is True


class TestStrings:

    def test_fixed_string_strips_nuls(self):
        reader = ByteReader(b'abc\x00\x00Z')
        assert reader.read_next_value('ascii', 5) == 'abc'
        assert reader.position == 5

    def test_utf8(self):
        data = 'né'.encode('utf-8')
        assert ByteReader(data).read_next_value('utf8', len(data)) == 'né'

    def test_cstring_consumes_terminator(self):
        reader = ByteReader(b'hi\x00rest')
        assert reader.read_next_value('cstring') == 'hi'
        assert reader.position == 3

    def test_unterminated_cstring(self):
        with pytest.raises(DecodeError, match="Unterminated string"):
            ByteReader(b'abc').read_next_cstring()

    def test_cstring_max_length(self):
        with pytest.raises(DecodeError, match="Unterminated"):
            ByteReader(b'abcdef\x00').read_cstring_at(0, max_length=3)

    def test_invalid_ascii(self):
        with pytest.raises(DecodeError, match="Invalid string data"):
            ByteReader(b'\xff\xfe').read_next_value('ascii', 2)

    def test_unsized_type_needs_length(self):
        with pytest.raises(DecodeError, match="requires a length"):
            ByteReader(b'abc').read_next_value('bytes')


class TestBounds:

    def test_buffer_too_short(self):
        with pytest.raises(DecodeError, match="Buffer too short") as exc:
            ByteReader(bytes(3)).read_next_uint(4)
        assert exc.value.offset == 0

    def test_position_outside(self):
        reader = ByteReader(bytes(4))
        reader.position = 4
        assert not reader.has_more()
        with pytest.raises(DecodeError):
            reader.position = 5

    def test_unknown_type(self):
        with pytest.raises(DecodeError, match="Unknown primitive type"):
            ByteReader(bytes(4)).read_next_value('u128')

    def test_clone_has_own_cursor(self):
        reader = ByteReader(bytes([1, 2, 3]))
        other = reader.clone(1)
        assert other.read_next_uint(1) == 2
        assert reader.position == 0
