#
# Copyright (C) 2025-26 zippeek contributors
#

import struct

from zippeek.errors import BoundsError

_UINT16 = struct.Struct('<H')
_UINT32 = struct.Struct('<I')


def _check_bounds(buffer, offset: int, width: int):
    if offset < 0 or offset + width > len(buffer):
        raise BoundsError(
            f"Attempt to read {width} bytes at offset {offset} outside buffer of {len(buffer)} bytes"
        )


def read_uint16_le(buffer, offset: int = 0) -> int:
    """Read an unsigned little-endian 16-bit integer"""
    _check_bounds(buffer, offset, 2)
    return _UINT16.unpack_from(buffer, offset)[0]


def read_uint32_le(buffer, offset: int = 0) -> int:
    """Read an unsigned little-endian 32-bit integer"""
    _check_bounds(buffer, offset, 4)
    return _UINT32.unpack_from(buffer, offset)[0]
