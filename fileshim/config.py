"""Configuration for opening OS-backed file handles.

Provides the OpenConfig dataclass and the open_config factory, which turns
a Python-style mode string into ``os.open`` flags.
"""

import os
from dataclasses import dataclass

DEFAULT_PERM = 0o666
DEFAULT_CHUNK_SIZE = 32 * 1024

# Base flags for each primary mode character.
_MODE_FLAGS = {
    "r": os.O_RDONLY,
    "w": os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    "a": os.O_WRONLY | os.O_CREAT | os.O_APPEND,
    "x": os.O_WRONLY | os.O_CREAT | os.O_EXCL,
}


@dataclass
class OpenConfig:
    """Options used when opening an OSFile.

    Attributes:
        flag: Flags passed to ``os.open`` (``os.O_*`` bitmask).
        perm: Permission bits for newly created files (before umask).
        chunk_size: Read size used by ``read_from`` when copying a reader.
    """

    flag: int = os.O_RDONLY
    perm: int = DEFAULT_PERM
    chunk_size: int = DEFAULT_CHUNK_SIZE


def open_config(mode: str = "r", **kwargs) -> OpenConfig:
    """Build an OpenConfig from a mode string.

    Args:
        mode: One of 'r', 'w', 'a', 'x', optionally followed by '+' for
            read/write access. A 'b' anywhere is accepted and ignored since
            OSFile always transfers bytes.
        **kwargs: Overrides for the remaining fields:
            - perm (int): Permission bits for created files.
            - chunk_size (int): Positive copy size for read_from().

    Returns:
        OpenConfig with the translated flags.

    Examples:
        >>> open_config("r").flag == os.O_RDONLY
        True
        >>> open_config("w+", perm=0o600).perm
        384
    """
    cleaned = mode.replace("b", "")
    plus = cleaned.endswith("+")
    primary = cleaned[:-1] if plus else cleaned

    if primary not in _MODE_FLAGS or "+" in primary:
        raise ValueError(f"Unsupported mode: {mode!r}. Use 'r', 'w', 'a' or 'x'.")

    flag = _MODE_FLAGS[primary]
    if plus:
        flag = (flag & ~(os.O_WRONLY | os.O_RDONLY)) | os.O_RDWR

    perm = kwargs.pop("perm", DEFAULT_PERM)
    chunk_size = kwargs.pop("chunk_size", DEFAULT_CHUNK_SIZE)

    if kwargs:
        raise ValueError(f"Unexpected arguments for open: {list(kwargs.keys())}")

    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    return OpenConfig(flag=flag, perm=perm, chunk_size=chunk_size)
