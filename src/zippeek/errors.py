#
# Copyright (C) 2025-26 zippeek contributors
#

"""Exceptions raised while reading a remote ZIP archive."""

from typing import Optional


class ZipPeekError(Exception):
    """Base class for every error raised by zippeek"""


class BoundsError(ZipPeekError, IndexError):
    """A read would run past the end of a buffer"""


class ZipFormatError(ZipPeekError):
    """Bad signature, overrunning record or malformed header"""


class EntryNotFoundError(ZipPeekError, LookupError):
    """The requested entry is not in the Central Directory"""


class ArchiveNotOpenError(EntryNotFoundError):
    """The Central Directory has not been loaded yet"""


class TransportError(ZipPeekError):
    """The server did not answer with 206 Partial Content"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class PreconditionFailedError(TransportError):
    """The remote file no longer matches the version we pinned (HTTP 412)"""

    def __init__(self, message: str, status: Optional[int] = 412):
        super().__init__(message, status)


class DecompressionError(ZipPeekError):
    """Compressed data is corrupt, truncated or of the wrong type"""


class UnsupportedCompressionError(DecompressionError):
    """No decompressor is available for the compression method"""

    def __init__(self, method: int):
        super().__init__(f"Unsupported compression method {method}")
        self.method = method


class SizeMismatchError(ZipPeekError):
    """Fewer bytes were available than the archive declares"""


class ChecksumError(ZipPeekError):
    """CRC-32 of the extracted data differs from the Central Directory"""
