"""Base file handle interface and dataclasses.

Defines the contract every file handle implementation (OSFile, MockFile)
satisfies. Conformance is structural: any object providing all of the
methods below is a ``File``.
"""

from __future__ import annotations

import os
import stat as stat_mod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, BinaryIO, Callable, Protocol, runtime_checkable


@dataclass
class FileInfo:
    """Status information for a single file or directory.

    Attributes:
        name: Base name of the file.
        size: Length in bytes for regular files; system-dependent otherwise.
        mode: Full ``st_mode`` value (file type and permission bits).
        mod_time: Last modification time (UTC).
        sys: Underlying ``os.stat_result``, if one was available.
    """

    name: str
    size: int
    mode: int
    mod_time: datetime
    sys: os.stat_result | None = None

    @classmethod
    def from_stat(cls, name: str, st: os.stat_result) -> "FileInfo":
        return cls(
            name=name,
            size=st.st_size,
            mode=st.st_mode,
            mod_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            sys=st,
        )

    @property
    def is_dir(self) -> bool:
        return stat_mod.S_ISDIR(self.mode)

    @property
    def perm(self) -> int:
        """Permission bits only."""
        return stat_mod.S_IMODE(self.mode)

    # os.stat_result-compatible properties, so a FileInfo can stand in where
    # callers only read st_size / st_mode / st_mtime.

    @property
    def st_size(self) -> int:
        return self.size

    @property
    def st_mode(self) -> int:
        return self.mode

    @property
    def st_mtime(self) -> float:
        return self.mod_time.timestamp()


@runtime_checkable
class RawConn(Protocol):
    """Raw access to a handle's descriptor.

    ``read`` and ``write`` call ``fn`` until it returns True, waiting for the
    descriptor to become ready between attempts.
    """

    def control(self, fn: Callable[[int], Any]) -> None: ...

    def read(self, fn: Callable[[int], bool]) -> None: ...

    def write(self, fn: Callable[[int], bool]) -> None: ...


@runtime_checkable
class File(Protocol):
    """Every operation an open file handle exposes.

    Errors are those of the underlying OS primitive; this interface adds no
    failure modes of its own.
    """

    # Directory enumeration. For n > 0 at most n entries are returned and
    # EOFError is raised once the directory is exhausted; for n <= 0 all
    # remaining entries are returned.

    def readdir(self, n: int) -> list[FileInfo]:
        """List directory entries as FileInfo records."""
        ...

    def readdirnames(self, n: int) -> list[str]:
        """List directory entry names."""
        ...

    def read_dir(self, n: int) -> list[os.DirEntry]:
        """List directory entries as os.DirEntry objects."""
        ...

    # Lifecycle

    def close(self) -> None: ...

    def sync(self) -> None:
        """Commit buffered contents to stable storage."""
        ...

    # Metadata

    def chown(self, uid: int, gid: int) -> None: ...

    def truncate(self, size: int) -> None: ...

    def chdir(self) -> None:
        """Make this directory the process working directory."""
        ...

    def stat(self) -> FileInfo: ...

    def name(self) -> str: ...

    def chmod(self, mode: int) -> None: ...

    # Data transfer

    def read(self, b: bytearray | memoryview) -> int:
        """Read into b at the current offset; 0 means end of file."""
        ...

    def read_at(self, b: bytearray | memoryview, off: int) -> int:
        """Read into b starting at off without moving the offset."""
        ...

    def read_from(self, r: BinaryIO) -> int:
        """Copy everything r produces into the handle."""
        ...

    def write(self, b: bytes | bytearray | memoryview) -> int: ...

    def write_at(self, b: bytes | bytearray | memoryview, off: int) -> int: ...

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int: ...

    def write_string(self, s: str) -> int: ...

    # Deadlines. None clears the deadline.

    def set_deadline(self, t: datetime | None) -> None: ...

    def set_read_deadline(self, t: datetime | None) -> None: ...

    def set_write_deadline(self, t: datetime | None) -> None: ...

    # Low-level access

    def syscall_conn(self) -> RawConn: ...

    def fd(self) -> int: ...
