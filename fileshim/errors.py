"""Exceptions raised by fileshim handles."""

from __future__ import annotations

import errno


class MockNotImplementedError(NotImplementedError):
    """Raised by a MockFile operation whose slot was never assigned."""

    def __init__(self, message: str = "not implemented by mock") -> None:
        super().__init__(message)


class NoDeadlineError(OSError):
    """The descriptor's file type cannot honor read/write deadlines."""

    def __init__(self, name: str = "") -> None:
        super().__init__(
            errno.EINVAL, "file type does not support deadline", name or None
        )


class DeadlineExceededError(TimeoutError):
    """An I/O operation did not become ready before its deadline."""

    def __init__(self, name: str = "") -> None:
        super().__init__(errno.ETIMEDOUT, "i/o timeout", name or None)
