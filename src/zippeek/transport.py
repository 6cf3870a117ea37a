#
# Copyright (C) 2025-26 zippeek contributors
#

"""HTTP byte-range transport.

One request per call, no retries: a failed request surfaces as
:class:`~zippeek.errors.TransportError` and the archive layer decides what to
do with it.
"""

import logging
from typing import Mapping, NamedTuple, Optional

import requests

from zippeek.errors import PreconditionFailedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
DEFAULT_TIMEOUT = 30


class RangeResponse(NamedTuple):
    status: int
    data: bytes
    etag: Optional[str]
    last_modified: Optional[str]


def build_range_header(offset: int, size: int) -> str:
    """Absolute range for offset >= 0, suffix range ("last N bytes") for negative offsets"""
    if offset < 0:
        return f'bytes={offset}'
    return f'bytes={offset}-{offset + size - 1}'


class RangeTransport:
    """Issues ranged GET requests over a :class:`requests.Session`"""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT,
                 user_agent: str = DEFAULT_USER_AGENT):
        self.owns_session = session is None
        self.session = session if session is not None else requests.Session()
        if user_agent:
            self.session.headers.update({'User-Agent': user_agent})
        self.timeout = timeout

    def fetch(self, url: str, offset: int, size: int, headers: Optional[Mapping[str, str]] = None) -> RangeResponse:
        request_headers = {
            'Range': build_range_header(offset, size),
            'Accept-Encoding': 'identity',
        }
        if headers:
            request_headers.update(headers)

        logger.debug("GET %s Range: %s", url, request_headers['Range'])
        try:
            response = self.session.get(url, headers=request_headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Connection timed out while reading {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to read {url}: {e}") from e

        if response.status_code == 412:
            raise PreconditionFailedError(f"HTTP 412 - {response.reason}: {url} has been modified")
        if response.status_code != 206:
            raise TransportError(f"HTTP {response.status_code} - {response.reason}: range request failed",
                                 response.status_code)

        return RangeResponse(
            status=response.status_code,
            data=response.content,
            etag=response.headers.get('etag'),
            last_modified=response.headers.get('last-modified'),
        )

    def close(self):
        if self.owns_session:
            self.session.close()
