"""
File and input utility functions for kindlepost.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

# Characters illegal in filenames on common filesystems, plus control characters
_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

MAX_FILENAME_LENGTH = 100


def sanitize_filename(filename: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """
    Turn a title into a filesystem-safe token.

    Illegal and control characters are dropped, whitespace runs collapse to a
    single underscore and the result is capped at ``max_length`` characters.

    Args:
        filename: Original title or filename
        max_length: Maximum length for the result

    Returns:
        Sanitized filename safe for filesystem use
    """
    filename = _ILLEGAL_FILENAME_CHARS.sub("", filename or "")
    filename = re.sub(r"\s+", "_", filename)
    filename = filename[:max_length]
    return filename or "unnamed"


def get_input_type(value: str) -> str:
    """
    Classify a CLI input.

    Returns:
        "url" for http(s) URLs, "pdf" for paths ending in .pdf, "file" for any
        other existing path, "unknown" otherwise.
    """
    if value.startswith(("http://", "https://")):
        return "url"
    if value.lower().endswith(".pdf"):
        return "pdf"
    if os.path.exists(value):
        return "file"
    return "unknown"


def ensure_dir(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The path that was ensured to exist
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def format_file_size(size_bytes: int) -> str:
    """
    Format a file size in bytes to a human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string (e.g., "1.5 MB")
    """
    value = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(value) < 1024.0:
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{value:.1f} PB"
