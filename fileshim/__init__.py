"""fileshim: a file handle interface, an OS-backed handle, and a configurable mock."""

from .base import File, FileInfo, RawConn
from .config import OpenConfig, open_config
from .errors import DeadlineExceededError, MockNotImplementedError, NoDeadlineError
from .mock import MockFile
from .osfile import OSFile, OSRawConn, create, open, open_file

__all__ = [
    "create",
    "DeadlineExceededError",
    "File",
    "FileInfo",
    "MockFile",
    "MockNotImplementedError",
    "NoDeadlineError",
    "open",
    "open_config",
    "open_file",
    "OpenConfig",
    "OSFile",
    "OSRawConn",
    "RawConn",
]
