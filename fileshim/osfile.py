"""OS-backed file handle.

OSFile wraps a descriptor returned by ``os.open`` and forwards every File
operation to the matching ``os`` primitive (os.pread, os.fchmod, os.scandir,
...). It adds no buffering and no filesystem semantics of its own.
"""

from __future__ import annotations

import errno
import fcntl
import itertools
import logging
import os
import select
import stat as stat_mod
from datetime import datetime
from typing import Any, BinaryIO, Callable, Iterator

from .base import FileInfo
from .config import DEFAULT_CHUNK_SIZE, OpenConfig, open_config
from .errors import DeadlineExceededError, NoDeadlineError

logger = logging.getLogger(__name__)


def _remaining(deadline: datetime) -> float:
    """Seconds left until deadline (naive deadlines are local time)."""
    return (deadline - datetime.now(deadline.tzinfo)).total_seconds()


class OSFile:
    """File handle backed by a real OS descriptor.

    The handle owns its descriptor and closes it on ``close()`` or when
    leaving a ``with`` block.

    Attributes:
        chunk_size: Read size used by ``read_from``.
    """

    def __init__(self, fd: int, name: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """Wrap an already-open descriptor.

        Args:
            fd: Descriptor from ``os.open`` (or ``os.pipe``, a socket, ...).
            name: Name the handle was opened with, returned by ``name()``.
            chunk_size: Read size used by ``read_from``.
        """
        self._fd = fd
        self._name = name
        self.chunk_size = chunk_size
        self._closed = False
        self._dir_iter: Iterator[os.DirEntry] | None = None
        self._pollable: bool | None = None
        self._read_deadline: datetime | None = None
        self._write_deadline: datetime | None = None

    @classmethod
    def from_config(cls, name: str, config: OpenConfig) -> "OSFile":
        """Open name with the flags and permissions in config."""
        fd = os.open(name, config.flag, config.perm)
        logger.debug("Opened %s as fd %d (flags=%#o)", name, fd, config.flag)
        return cls(fd, name, chunk_size=config.chunk_size)

    def _check_closed(self) -> None:
        if self._closed:
            raise ValueError(f"I/O operation on closed file: {self._name}")

    # -------------------------------------------------------------------------
    # Directory enumeration
    # -------------------------------------------------------------------------

    def _next_entries(self, n: int) -> list[os.DirEntry]:
        self._check_closed()
        if self._dir_iter is None:
            self._dir_iter = os.scandir(self._fd)
        if n <= 0:
            return list(self._dir_iter)
        entries = list(itertools.islice(self._dir_iter, n))
        if not entries:
            raise EOFError(f"No more directory entries: {self._name}")
        return entries

    def _close_dir(self) -> None:
        if self._dir_iter is not None:
            self._dir_iter.close()  # type: ignore[attr-defined]
            self._dir_iter = None

    def readdir(self, n: int) -> list[FileInfo]:
        """List directory entries as FileInfo records (symlinks not followed).

        Entries removed between enumeration and stat are skipped.
        """
        infos = []
        for entry in self._next_entries(n):
            try:
                st = entry.stat(follow_symlinks=False)
            except FileNotFoundError:
                continue
            infos.append(FileInfo.from_stat(entry.name, st))
        return infos

    def readdirnames(self, n: int) -> list[str]:
        return [entry.name for entry in self._next_entries(n)]

    def read_dir(self, n: int) -> list[os.DirEntry]:
        return self._next_entries(n)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Release the descriptor. Closing twice is a no-op."""
        if self._closed:
            return
        self._close_dir()
        self._closed = True
        logger.debug("Closing %s (fd %d)", self._name, self._fd)
        os.close(self._fd)

    def sync(self) -> None:
        self._check_closed()
        os.fsync(self._fd)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "OSFile":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"fd={self._fd}"
        return f"OSFile({self._name!r}, {state})"

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def chown(self, uid: int, gid: int) -> None:
        self._check_closed()
        os.fchown(self._fd, uid, gid)

    def truncate(self, size: int) -> None:
        self._check_closed()
        os.ftruncate(self._fd, size)

    def chdir(self) -> None:
        self._check_closed()
        os.fchdir(self._fd)

    def stat(self) -> FileInfo:
        self._check_closed()
        return FileInfo.from_stat(os.path.basename(self._name), os.fstat(self._fd))

    def name(self) -> str:
        return self._name

    def chmod(self, mode: int) -> None:
        self._check_closed()
        os.fchmod(self._fd, mode)

    # -------------------------------------------------------------------------
    # Data transfer
    # -------------------------------------------------------------------------

    def _with_deadline(self, readable: bool, op: Callable[[], int]) -> int:
        """Run op, waiting for readiness first while a deadline is set.

        Descriptors with a deadline are non-blocking, so op raises
        BlockingIOError instead of stalling past the deadline; the wait is
        then repeated until op succeeds or the deadline passes.
        """
        deadline = self._read_deadline if readable else self._write_deadline
        if deadline is not None:
            self._poll(readable)
        while True:
            try:
                return op()
            except BlockingIOError:
                self._poll(readable)

    def read(self, b: bytearray | memoryview) -> int:
        self._check_closed()
        return self._with_deadline(True, lambda: os.readv(self._fd, [b]))

    def read_at(self, b: bytearray | memoryview, off: int) -> int:
        """Fill b from offset off; returns less than len(b) only at end of file."""
        self._check_closed()
        if off < 0:
            raise OSError(errno.EINVAL, "negative offset", self._name)
        view = memoryview(b)
        total = 0
        while total < len(view):
            chunk = os.pread(self._fd, len(view) - total, off + total)
            if not chunk:
                break
            view[total : total + len(chunk)] = chunk
            total += len(chunk)
        return total

    def read_from(self, r: BinaryIO) -> int:
        self._check_closed()
        total = 0
        while True:
            chunk = r.read(self.chunk_size)
            if not chunk:
                return total
            total += self.write(chunk)

    def write(self, b: bytes | bytearray | memoryview) -> int:
        """Write all of b, retrying short writes."""
        self._check_closed()
        view = memoryview(b)
        total = 0
        while total < len(view):
            rest = view[total:]
            total += self._with_deadline(False, lambda: os.write(self._fd, rest))
        return total

    def write_at(self, b: bytes | bytearray | memoryview, off: int) -> int:
        self._check_closed()
        if fcntl.fcntl(self._fd, fcntl.F_GETFL) & os.O_APPEND:
            raise OSError(
                errno.EINVAL, "write_at on file opened with O_APPEND", self._name
            )
        if off < 0:
            raise OSError(errno.EINVAL, "negative offset", self._name)
        view = memoryview(b)
        total = 0
        while total < len(view):
            total += os.pwrite(self._fd, view[total:], off + total)
        return total

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Reposition the offset. Also restarts directory enumeration."""
        self._check_closed()
        self._close_dir()
        return os.lseek(self._fd, offset, whence)

    def write_string(self, s: str) -> int:
        return self.write(s.encode("utf-8"))

    # -------------------------------------------------------------------------
    # Deadlines
    # -------------------------------------------------------------------------

    def _is_pollable(self) -> bool:
        if self._pollable is None:
            mode = os.fstat(self._fd).st_mode
            self._pollable = (
                stat_mod.S_ISFIFO(mode)
                or stat_mod.S_ISSOCK(mode)
                or stat_mod.S_ISCHR(mode)
            )
        return self._pollable

    def _set_deadlines(
        self, t: datetime | None, *, read: bool, write: bool
    ) -> None:
        self._check_closed()
        if not self._is_pollable():
            raise NoDeadlineError(self._name)
        if read:
            self._read_deadline = t
        if write:
            self._write_deadline = t
        os.set_blocking(
            self._fd, self._read_deadline is None and self._write_deadline is None
        )

    def set_deadline(self, t: datetime | None) -> None:
        self._set_deadlines(t, read=True, write=True)

    def set_read_deadline(self, t: datetime | None) -> None:
        self._set_deadlines(t, read=True, write=False)

    def set_write_deadline(self, t: datetime | None) -> None:
        self._set_deadlines(t, read=False, write=True)

    def _poll(self, readable: bool) -> None:
        """Block until the descriptor is ready, honoring the current deadline."""
        deadline = self._read_deadline if readable else self._write_deadline
        timeout = None
        if deadline is not None:
            timeout = _remaining(deadline)
            if timeout <= 0:
                raise DeadlineExceededError(self._name)
        fds = [self._fd]
        if readable:
            ready, _, _ = select.select(fds, [], [], timeout)
        else:
            _, ready, _ = select.select([], fds, [], timeout)
        if not ready:
            raise DeadlineExceededError(self._name)

    # -------------------------------------------------------------------------
    # Low-level access
    # -------------------------------------------------------------------------

    def syscall_conn(self) -> "OSRawConn":
        self._check_closed()
        return OSRawConn(self.fd, self._check_closed, self._poll)

    def fd(self) -> int:
        """Return the descriptor, or -1 once closed."""
        return -1 if self._closed else self._fd


class OSRawConn:
    """RawConn bound to an OSFile.

    Holds the handle's descriptor accessor, closed check and readiness
    wait rather than the handle itself.
    """

    def __init__(
        self,
        fd: Callable[[], int],
        check_closed: Callable[[], None],
        wait: Callable[[bool], None],
    ):
        self._fd = fd
        self._check_closed = check_closed
        self._wait = wait

    def control(self, fn: Callable[[int], Any]) -> None:
        self._check_closed()
        fn(self._fd())

    def read(self, fn: Callable[[int], bool]) -> None:
        self._check_closed()
        while not fn(self._fd()):
            self._wait(True)

    def write(self, fn: Callable[[int], bool]) -> None:
        self._check_closed()
        while not fn(self._fd()):
            self._wait(False)


def open_file(name: str, flag: int = os.O_RDONLY, perm: int = 0o666) -> OSFile:
    """Open name with raw ``os.open`` flags."""
    return OSFile.from_config(name, OpenConfig(flag=flag, perm=perm))


def open(name: str, mode: str = "r", **kwargs) -> OSFile:
    """Open name with a Python mode string ('r', 'w+', 'a', ...).

    Extra keyword arguments are passed to ``open_config``.
    """
    return OSFile.from_config(name, open_config(mode, **kwargs))


def create(name: str) -> OSFile:
    """Create or truncate name and open it for reading and writing."""
    return open(name, "w+")
