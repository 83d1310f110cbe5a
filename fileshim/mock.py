"""Configurable File stand-in for tests.

MockFile holds one optional callable per File operation. Calling an
operation forwards to its slot; an unassigned slot raises
MockNotImplementedError, except ``name()`` and ``fd()`` which return
``""`` and ``0``.

Example::

    real = fileshim.create(path)
    mock = MockFile.from_file(real)

    def failing_write(b):
        raise OSError(errno.ENOSPC, "No space left on device")

    mock.write_fn = failing_write
    code_under_test(mock)  # every other call still reaches the real handle
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, BinaryIO, Callable

from .base import File, FileInfo, RawConn
from .errors import MockNotImplementedError

logger = logging.getLogger(__name__)


@dataclass
class MockFile:
    """File whose every operation is an independently replaceable slot.

    Slots are named after the operation with an ``_fn`` suffix and share its
    signature. The mock keeps no other state: it records no calls and adds no
    locking, so any such behavior belongs inside the slot a test assigns.
    """

    readdir_fn: Callable[[int], list[FileInfo]] | None = None
    readdirnames_fn: Callable[[int], list[str]] | None = None
    read_dir_fn: Callable[[int], list[os.DirEntry]] | None = None
    close_fn: Callable[[], None] | None = None
    chown_fn: Callable[[int, int], None] | None = None
    truncate_fn: Callable[[int], None] | None = None
    sync_fn: Callable[[], None] | None = None
    chdir_fn: Callable[[], None] | None = None
    stat_fn: Callable[[], FileInfo] | None = None
    name_fn: Callable[[], str] | None = None
    read_fn: Callable[[Any], int] | None = None
    read_at_fn: Callable[[Any, int], int] | None = None
    read_from_fn: Callable[[BinaryIO], int] | None = None
    write_fn: Callable[[Any], int] | None = None
    write_at_fn: Callable[[Any, int], int] | None = None
    seek_fn: Callable[[int, int], int] | None = None
    write_string_fn: Callable[[str], int] | None = None
    chmod_fn: Callable[[int], None] | None = None
    set_deadline_fn: Callable[[datetime | None], None] | None = None
    set_read_deadline_fn: Callable[[datetime | None], None] | None = None
    set_write_deadline_fn: Callable[[datetime | None], None] | None = None
    syscall_conn_fn: Callable[[], RawConn] | None = None
    fd_fn: Callable[[], int] | None = None

    @classmethod
    def from_file(cls, file: File) -> "MockFile":
        """Build a MockFile whose every slot calls the same method on file.

        The result behaves exactly like file until a test reassigns one of
        its slots. file itself is never modified.
        """
        logger.debug("Wrapping %r in MockFile", file)
        slots = {
            f.name: getattr(file, f.name[: -len("_fn")]) for f in fields(cls)
        }
        return cls(**slots)

    def _require(self, slot: str) -> Callable[..., Any]:
        """Get a slot, or raise MockNotImplementedError if unassigned."""
        fn = getattr(self, slot)
        if fn is None:
            raise MockNotImplementedError()
        return fn

    def readdir(self, n: int) -> list[FileInfo]:
        return self._require("readdir_fn")(n)

    def readdirnames(self, n: int) -> list[str]:
        return self._require("readdirnames_fn")(n)

    def read_dir(self, n: int) -> list[os.DirEntry]:
        return self._require("read_dir_fn")(n)

    def close(self) -> None:
        return self._require("close_fn")()

    def chown(self, uid: int, gid: int) -> None:
        return self._require("chown_fn")(uid, gid)

    def truncate(self, size: int) -> None:
        return self._require("truncate_fn")(size)

    def sync(self) -> None:
        return self._require("sync_fn")()

    def chdir(self) -> None:
        return self._require("chdir_fn")()

    def stat(self) -> FileInfo:
        return self._require("stat_fn")()

    def name(self) -> str:
        if self.name_fn is None:
            return ""
        return self.name_fn()

    def read(self, b: bytearray | memoryview) -> int:
        return self._require("read_fn")(b)

    def read_at(self, b: bytearray | memoryview, off: int) -> int:
        return self._require("read_at_fn")(b, off)

    def read_from(self, r: BinaryIO) -> int:
        return self._require("read_from_fn")(r)

    def write(self, b: bytes | bytearray | memoryview) -> int:
        return self._require("write_fn")(b)

    def write_at(self, b: bytes | bytearray | memoryview, off: int) -> int:
        return self._require("write_at_fn")(b, off)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._require("seek_fn")(offset, whence)

    def write_string(self, s: str) -> int:
        return self._require("write_string_fn")(s)

    def chmod(self, mode: int) -> None:
        return self._require("chmod_fn")(mode)

    def set_deadline(self, t: datetime | None) -> None:
        return self._require("set_deadline_fn")(t)

    def set_read_deadline(self, t: datetime | None) -> None:
        return self._require("set_read_deadline_fn")(t)

    def set_write_deadline(self, t: datetime | None) -> None:
        return self._require("set_write_deadline_fn")(t)

    def syscall_conn(self) -> RawConn:
        return self._require("syscall_conn_fn")()

    def fd(self) -> int:
        if self.fd_fn is None:
            return 0
        return self.fd_fn()
