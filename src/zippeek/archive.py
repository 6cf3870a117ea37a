#
# Copyright (C) 2025-26 zippeek contributors
#

"""Random access to the members of a ZIP archive on a remote HTTP server.

Only three kinds of byte ranges are ever requested: the End Of Central
Directory record at the tail of the file, the Central Directory itself, and
the span of a single member (local header plus compressed data).

Every request after the first is pinned to the version of the file seen by
the previous one (``If-Match`` / ``If-Unmodified-Since``). When the server
answers 412 the Central Directory is thrown away, reloaded and the member is
fetched again, up to ``max_attempts`` times.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional

from zippeek.binary import read_uint16_le, read_uint32_le
from zippeek.compression import decompress_data, verify_crc32
from zippeek.errors import (
    ArchiveNotOpenError,
    ChecksumError,
    EntryNotFoundError,
    PreconditionFailedError,
    SizeMismatchError,
    ZipFormatError,
)
from zippeek.transport import RangeTransport
from zippeek.utils import format_size

logger = logging.getLogger(__name__)

EOCD_SIGNATURE = 0x06054b50
CENTRAL_DIRECTORY_SIGNATURE = 0x02014b50
LOCAL_FILE_HEADER_SIGNATURE = 0x04034b50

EOCD_SIZE = 22
# Archives with a longer comment than this are not supported
MAX_COMMENT_LENGTH = 16
CENTRAL_DIRECTORY_HEADER_SIZE = 46
LOCAL_FILE_HEADER_SIZE = 30

FLAG_UTF8 = 0x0800

DEFAULT_MAX_ATTEMPTS = 3


class EndOfCentralDirectory(NamedTuple):
    count: int
    size: int
    offset: int


@dataclass(frozen=True)
class CentralDirectoryEntry:
    name: str
    name_length: int
    flags: int
    compression_method: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    local_header_offset: int

    @property
    def is_dir(self) -> bool:
        return self.name.endswith('/')


@dataclass
class ConsistencyState:
    """Version of the remote file the next request is pinned to"""
    etag: Optional[str] = None
    last_modified: Optional[str] = None

    def conditional_headers(self) -> Dict[str, str]:
        if self.etag:
            return {'If-Match': self.etag}
        if self.last_modified:
            return {'If-Unmodified-Since': self.last_modified}
        return {}

    def clear(self):
        self.etag = None
        self.last_modified = None


def decode_name(raw: bytes, flags: int) -> str:
    if flags & FLAG_UTF8:
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ZipFormatError(f"Entry name flagged as UTF-8 is not valid UTF-8: {raw!r}") from e
    return raw.decode('cp437')


def parse_central_directory(buffer: bytes) -> List[CentralDirectoryEntry]:
    """Walk a Central Directory buffer record by record"""
    entries = []
    size = len(buffer)
    index = 0
    while index < size:
        if index + CENTRAL_DIRECTORY_HEADER_SIZE > size:
            raise ZipFormatError(f"Truncated CD record at offset {index}")
        signature = read_uint32_le(buffer, index)
        if signature != CENTRAL_DIRECTORY_SIGNATURE:
            raise ZipFormatError(f"Invalid CD record signature 0x{signature:08x} at offset {index}")

        name_length = read_uint16_le(buffer, index + 28)
        extra_length = read_uint16_le(buffer, index + 30)
        comment_length = read_uint16_le(buffer, index + 32)
        record_size = CENTRAL_DIRECTORY_HEADER_SIZE + name_length + extra_length + comment_length
        if index + record_size > size:
            raise ZipFormatError(f"CD record at offset {index} runs past the end of the directory")

        flags = read_uint16_le(buffer, index + 8)
        name_start = index + CENTRAL_DIRECTORY_HEADER_SIZE
        entries.append(CentralDirectoryEntry(
            name=decode_name(buffer[name_start:name_start + name_length], flags),
            name_length=name_length,
            flags=flags,
            compression_method=read_uint16_le(buffer, index + 10),
            crc32=read_uint32_le(buffer, index + 16),
            compressed_size=read_uint32_le(buffer, index + 20),
            uncompressed_size=read_uint32_le(buffer, index + 24),
            local_header_offset=read_uint32_le(buffer, index + 42),
        ))
        index += record_size
    return entries


class RemoteZipFile:
    """A ZIP archive read piecemeal over HTTP range requests.

    Example::

        with RemoteZipFile(url) as archive:
            archive.open()
            text = archive.extract_text_file('docs/LICENSE.txt')

    Calls on one instance are serialized by an internal lock.
    """

    def __init__(self, url: str, transport: Optional[RangeTransport] = None,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS, verify_crc: bool = True):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.url = url
        self.owns_transport = transport is None
        self.transport = transport if transport is not None else RangeTransport()
        self.max_attempts = max_attempts
        self.verify_crc = verify_crc
        self.state = ConsistencyState()
        self.central_directory: Optional[List[CentralDirectoryEntry]] = None
        self.central_directory_offset: Optional[int] = None
        self._lock = threading.RLock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def open(self):
        with self._lock:
            self.state.clear()
            self.central_directory = self._load_central_directory()

    def close(self):
        """Nothing is held open between calls; only a transport we created is released"""
        with self._lock:
            if self.owns_transport:
                self.transport.close()

    @property
    def entries(self) -> List[CentralDirectoryEntry]:
        if self.central_directory is None:
            raise ArchiveNotOpenError("File has not been opened yet")
        return list(self.central_directory)

    def get_files(self) -> List[str]:
        return [entry.name for entry in self.entries if not entry.is_dir]

    def get_entry(self, name: str) -> CentralDirectoryEntry:
        for entry in self.entries:
            if entry.name == name:
                return entry
        raise EntryNotFoundError(f"Cannot find file in archive: {name}")

    def extract_file(self, name: str) -> bytes:
        """Fetch and decompress one member, reloading the directory if the file changed underneath us"""
        with self._lock:
            reload = False
            for attempt in range(1, self.max_attempts + 1):
                try:
                    if reload:
                        self.central_directory = self._load_central_directory()
                    return self._retrieve_file(name)
                except PreconditionFailedError:
                    self.state.clear()
                    self.central_directory = None
                    if attempt == self.max_attempts:
                        logger.warning("%s kept changing, giving up after %d attempts", self.url, attempt)
                        raise
                    logger.warning("%s was modified, reloading central directory (attempt %d/%d)",
                                   self.url, attempt + 1, self.max_attempts)
                    reload = True

    def extract_text_file(self, name: str, encoding: str = 'utf-8') -> str:
        return self.extract_file(name).decode(encoding)

    def _fetch(self, size: int, offset: int) -> bytes:
        if size == 0:
            return b''
        response = self.transport.fetch(self.url, offset, size, self.state.conditional_headers())
        self.state.etag = response.etag
        self.state.last_modified = response.last_modified

        data = response.data
        if len(data) > size:
            data = data[:size]
        elif len(data) < size:
            raise SizeMismatchError(f"Expected {size} bytes at offset {offset}, received {len(data)}")
        return data

    def _find_central_directory(self) -> EndOfCentralDirectory:
        offset = -EOCD_SIZE
        offset_limit = -EOCD_SIZE - MAX_COMMENT_LENGTH
        while offset >= offset_limit:
            try:
                header = self._fetch(EOCD_SIZE, offset)
            except SizeMismatchError as e:
                # resource is shorter than the window, so no EOCD can start here or further back
                raise ZipFormatError("Unable to find EOCD record") from e
            signature = read_uint32_le(header)
            if signature == EOCD_SIGNATURE:
                eocd = EndOfCentralDirectory(
                    count=read_uint16_le(header, 10),
                    size=read_uint32_le(header, 12),
                    offset=read_uint32_le(header, 16),
                )
                logger.debug("Found EOCD at %d: %d entries, %d bytes at offset %d",
                             offset, eocd.count, eocd.size, eocd.offset)
                return eocd
            # signature bytes are 50 4b 05 06: a window starting inside it can only begin with 4b, 05 or 06
            first_byte = signature & 0xFF
            if first_byte == 0x06:
                offset -= 3
            elif first_byte == 0x05:
                offset -= 2
            elif first_byte == 0x4b:
                offset -= 1
            else:
                offset -= 4
        raise ZipFormatError("Unable to find EOCD record")

    def _load_central_directory(self) -> List[CentralDirectoryEntry]:
        eocd = self._find_central_directory()
        buffer = self._fetch(eocd.size, eocd.offset)
        entries = parse_central_directory(buffer)
        if len(entries) != eocd.count:
            logger.warning("EOCD declares %d entries but the central directory holds %d",
                           eocd.count, len(entries))
        logger.debug("Loaded central directory of %s with %d entries", format_size(eocd.size), len(entries))
        self.central_directory_offset = eocd.offset
        return entries

    def _end_offset(self, entry: CentralDirectoryEntry) -> int:
        following = [r.local_header_offset for r in self.central_directory
                     if r.local_header_offset > entry.local_header_offset]
        return min(following) if following else self.central_directory_offset

    def _retrieve_file(self, name: str) -> bytes:
        if self.central_directory is None:
            raise ArchiveNotOpenError("File has not been opened yet")
        entry = self.get_entry(name)

        # header, data and any data descriptor in a single request
        start = entry.local_header_offset
        end = self._end_offset(entry)
        if end <= start:
            raise ZipFormatError(f"Local header offset {start} of {name} lies beyond the central directory")
        combined = self._fetch(end - start, start)
        if len(combined) < LOCAL_FILE_HEADER_SIZE or read_uint32_le(combined) != LOCAL_FILE_HEADER_SIGNATURE:
            raise ZipFormatError(f"Invalid file header for {name}")
        name_length = read_uint16_le(combined, 26)
        extra_length = read_uint16_le(combined, 28)
        data_offset = LOCAL_FILE_HEADER_SIZE + name_length + extra_length
        data = combined[data_offset:data_offset + entry.compressed_size]
        if len(data) != entry.compressed_size:
            raise SizeMismatchError(
                f"Cannot read the correct number of bytes for {name}: "
                f"expected {entry.compressed_size}, got {len(data)}"
            )

        result = decompress_data(data, entry.compression_method, entry.uncompressed_size)
        if len(result) != entry.uncompressed_size:
            raise SizeMismatchError(
                f"Extracted {len(result)} bytes from {name}, expected {entry.uncompressed_size}"
            )
        if self.verify_crc and not verify_crc32(result, entry.crc32):
            raise ChecksumError(f"CRC32 verification failed for {name}")
        return result
