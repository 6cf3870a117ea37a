#
# Copyright (C) 2025-26 zippeek contributors
#

import bz2
import logging
import lzma
import zlib
from typing import Optional

from zippeek.binary import read_uint16_le
from zippeek.errors import BoundsError, DecompressionError, UnsupportedCompressionError
from zippeek.utils import format_size

logger = logging.getLogger(__name__)

STORED = 0
DEFLATED = 8
BZIP2 = 12
LZMA = 14

COMPRESSION_NAMES = {
    0: "STORED (No Compression)",
    1: "SHRUNK",
    2: "REDUCED (factor 1)",
    3: "REDUCED (factor 2)",
    4: "REDUCED (factor 3)",
    5: "REDUCED (factor 4)",
    6: "IMPLODED",
    8: "DEFLATE",
    9: "DEFLATE64",
    10: "PKWARE IMPLODE",
    12: "BZIP2",
    14: "LZMA",
    19: "IBM LZ77 z",
    93: "ZSTANDARD",
    95: "XZ",
    97: "WAVPACK",
    98: "PPMD",
    99: "WinZip AES Encrypted",
}


def get_compression_name(method: int) -> str:
    return COMPRESSION_NAMES.get(method, f"Unknown Method {method}")


def _require_bytes(data):
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise DecompressionError(f"Invalid input: expected a bytes-like object, got {type(data).__name__}")


def _inflate_raw(data) -> bytes:
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    try:
        result = decompressor.decompress(data)
        result += decompressor.flush()
    except zlib.error as e:
        raise DecompressionError(f"Corrupted DEFLATE data: {e}") from e
    if not decompressor.eof:
        raise DecompressionError("Truncated DEFLATE data: end of stream not reached")
    return result


def _decompress_bzip2(data) -> bytes:
    decompressor = bz2.BZ2Decompressor()
    try:
        result = decompressor.decompress(data)
    except (OSError, ValueError) as e:
        raise DecompressionError(f"Corrupted BZIP2 data: {e}") from e
    if not decompressor.eof:
        raise DecompressionError("Truncated BZIP2 data: end of stream not reached")
    return result


def _decompress_lzma(data, uncompressed_size: Optional[int] = None) -> bytes:
    # ZIP stores LZMA as: version (2 bytes), properties size (2 bytes), properties, raw LZMA1 stream
    try:
        props_size = read_uint16_le(data, 2)
    except BoundsError as e:
        raise DecompressionError("Truncated LZMA header") from e
    if len(data) < 4 + props_size:
        raise DecompressionError("Truncated LZMA properties")
    try:
        # private helper, but it is what the stdlib zipfile module uses to read these properties
        lzma_filter = lzma._decode_filter_properties(lzma.FILTER_LZMA1, bytes(data[4:4 + props_size]))
        decompressor = lzma.LZMADecompressor(lzma.FORMAT_RAW, filters=[lzma_filter])
        result = decompressor.decompress(bytes(data[4 + props_size:]))
    except lzma.LZMAError as e:
        raise DecompressionError(f"Corrupted LZMA data: {e}") from e
    # streams written without an end marker are complete once the declared size is reached
    if not decompressor.eof and (uncompressed_size is None or len(result) < uncompressed_size):
        raise DecompressionError("Truncated LZMA data: end of stream not reached")
    return result


def decompress_data(data, compression_method: int, uncompressed_size: Optional[int] = None):
    """Decompress a member payload according to its ZIP compression method.

    uncompressed_size is only needed to tell a complete LZMA stream without an
    end marker from a truncated one.
    """
    if compression_method == STORED:
        return data

    _require_bytes(data)
    if compression_method == DEFLATED:
        result = _inflate_raw(data)
    elif compression_method == BZIP2:
        result = _decompress_bzip2(data)
    elif compression_method == LZMA:
        result = _decompress_lzma(data, uncompressed_size)
    else:
        raise UnsupportedCompressionError(compression_method)

    logger.debug("Decompressed %s data (%s -> %s)", get_compression_name(compression_method),
                 format_size(len(data)), format_size(len(result)))
    return result


def verify_crc32(data, expected_crc32: int) -> bool:
    """Verify CRC32 checksum of data"""
    return (zlib.crc32(data) & 0xFFFFFFFF) == expected_crc32
