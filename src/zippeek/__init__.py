#
# Copyright (C) 2025-26 zippeek contributors
#

__version__ = "1.0.0"

from zippeek.archive import CentralDirectoryEntry, ConsistencyState, EndOfCentralDirectory, RemoteZipFile
from zippeek.binary import read_uint16_le, read_uint32_le
from zippeek.compression import decompress_data, get_compression_name
from zippeek.errors import (
    ArchiveNotOpenError,
    BoundsError,
    ChecksumError,
    DecompressionError,
    EntryNotFoundError,
    PreconditionFailedError,
    SizeMismatchError,
    TransportError,
    UnsupportedCompressionError,
    ZipFormatError,
    ZipPeekError,
)
from zippeek.transport import RangeResponse, RangeTransport

__all__ = [
    'ArchiveNotOpenError',
    'BoundsError',
    'CentralDirectoryEntry',
    'ChecksumError',
    'ConsistencyState',
    'DecompressionError',
    'EndOfCentralDirectory',
    'EntryNotFoundError',
    'PreconditionFailedError',
    'RangeResponse',
    'RangeTransport',
    'RemoteZipFile',
    'SizeMismatchError',
    'TransportError',
    'UnsupportedCompressionError',
    'ZipFormatError',
    'ZipPeekError',
    'decompress_data',
    'get_compression_name',
    'read_uint16_le',
    'read_uint32_le',
]
