#
# Copyright (C) 2025-26 zippeek contributors
#

import re
from typing import Iterable, List

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|]')


def format_size(bytes_size: int) -> str:
    if bytes_size < 1024:
        return f"{bytes_size} B"
    elif bytes_size < 1024 * 1024:
        return f"{bytes_size / 1024:.2f} KB"
    elif bytes_size < 1024 * 1024 * 1024:
        return f"{bytes_size / (1024 * 1024):.2f} MB"
    else:
        return f"{bytes_size / (1024 * 1024 * 1024):.2f} GB"


def filter_names(names: Iterable[str], pattern: str) -> List[str]:
    """Names matching a regex, or containing the pattern when it is not a valid regex"""
    try:
        regex = re.compile(pattern, re.IGNORECASE)
        return [name for name in names if regex.search(name)]
    except re.error:
        pattern_lower = pattern.lower()
        return [name for name in names if pattern_lower in name.lower()]


def safe_path_parts(name: str) -> List[str]:
    """Split an entry name into path components that are safe to create on disk"""
    parts = []
    for part in name.split('/'):
        if part in ('', '.', '..'):
            continue
        parts.append(_UNSAFE_CHARS.sub('_', part))
    return parts
