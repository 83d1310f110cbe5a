"""Tests for OSFile read/write deadlines on pollable descriptors."""

import os
import threading
from datetime import datetime, timedelta, timezone

import pytest

from fileshim import DeadlineExceededError, NoDeadlineError, OSFile, create


def _soon(ms: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(milliseconds=ms)


def _past() -> datetime:
    return datetime.now(timezone.utc) - timedelta(seconds=1)


@pytest.fixture
def pipe():
    r, w = os.pipe()
    reader = OSFile(r, "pipe-r")
    writer = OSFile(w, "pipe-w")
    yield reader, writer
    reader.close()
    writer.close()


class TestUnsupportedFileTypes:
    def test_regular_file_rejects_deadline(self, tmp_path):
        with create(str(tmp_path / "f.txt")) as f:
            with pytest.raises(NoDeadlineError):
                f.set_deadline(_soon(100))
            with pytest.raises(NoDeadlineError):
                f.set_read_deadline(_soon(100))
            with pytest.raises(NoDeadlineError):
                f.set_write_deadline(None)

    def test_no_deadline_error_is_os_error(self):
        assert issubclass(NoDeadlineError, OSError)
        assert issubclass(DeadlineExceededError, TimeoutError)


class TestPipeDeadlines:
    def test_read_times_out_without_data(self, pipe):
        reader, _ = pipe
        reader.set_read_deadline(_soon(50))
        with pytest.raises(DeadlineExceededError):
            reader.read(bytearray(4))

    def test_expired_deadline_fails_immediately(self, pipe):
        reader, writer = pipe
        writer.write(b"data")
        reader.set_read_deadline(_past())
        with pytest.raises(DeadlineExceededError):
            reader.read(bytearray(4))

    def test_read_with_data_before_deadline(self, pipe):
        reader, writer = pipe
        writer.write(b"data")
        reader.set_read_deadline(_soon(1000))
        buf = bytearray(4)
        assert reader.read(buf) == 4
        assert bytes(buf) == b"data"

    def test_clearing_deadline(self, pipe):
        reader, writer = pipe
        reader.set_read_deadline(_past())
        reader.set_read_deadline(None)
        writer.write(b"ok")
        buf = bytearray(2)
        assert reader.read(buf) == 2

    def test_write_deadline_with_room(self, pipe):
        reader, writer = pipe
        writer.set_write_deadline(_soon(1000))
        assert writer.write(b"hello") == 5
        buf = bytearray(5)
        reader.read(buf)
        assert bytes(buf) == b"hello"

    def test_set_deadline_covers_both_directions(self, pipe):
        reader, writer = pipe
        writer.set_deadline(_past())
        with pytest.raises(DeadlineExceededError):
            writer.write(b"x")
        reader.set_deadline(_past())
        with pytest.raises(DeadlineExceededError):
            reader.read(bytearray(1))

    def test_naive_deadline_is_local_time(self, pipe):
        reader, _ = pipe
        reader.set_read_deadline(datetime.now() + timedelta(milliseconds=50))
        with pytest.raises(DeadlineExceededError):
            reader.read(bytearray(1))


class TestRawConnDeadlines:
    def test_read_retries_until_done(self, pipe):
        reader, writer = pipe
        writer.write(b"xy")
        attempts = []

        def fn(fd):
            attempts.append(fd)
            return len(attempts) == 2

        reader.syscall_conn().read(fn)
        assert attempts == [reader.fd(), reader.fd()]

    def test_read_honors_deadline(self, pipe):
        reader, _ = pipe
        reader.set_read_deadline(_soon(50))
        with pytest.raises(DeadlineExceededError):
            reader.syscall_conn().read(lambda fd: False)


class TestNonBlockingWithDeadline:
    def test_large_write_times_out_when_pipe_fills(self, pipe):
        _, writer = pipe
        writer.set_write_deadline(_soon(200))
        started = datetime.now(timezone.utc)
        with pytest.raises(DeadlineExceededError):
            writer.write(b"x" * (1 << 20))
        assert datetime.now(timezone.utc) - started < timedelta(seconds=5)

    def test_large_write_within_deadline_when_drained(self, pipe):
        reader, writer = pipe
        payload = b"y" * (1 << 17)
        received = bytearray()

        def drain():
            buf = bytearray(1 << 16)
            while len(received) < len(payload):
                n = os.readv(reader.fd(), [buf])
                received.extend(buf[:n])

        thread = threading.Thread(target=drain)
        thread.start()
        writer.set_write_deadline(_soon(5000))
        assert writer.write(payload) == len(payload)
        thread.join(timeout=5)
        assert bytes(received) == payload

    def test_deadline_makes_descriptor_non_blocking(self, pipe):
        reader, _ = pipe
        assert os.get_blocking(reader.fd()) is True
        reader.set_read_deadline(_soon(1000))
        assert os.get_blocking(reader.fd()) is False
        reader.set_read_deadline(None)
        assert os.get_blocking(reader.fd()) is True

    def test_blocking_restored_once_both_deadlines_cleared(self, pipe):
        reader, _ = pipe
        reader.set_deadline(_soon(1000))
        reader.set_read_deadline(None)
        assert os.get_blocking(reader.fd()) is False
        reader.set_write_deadline(None)
        assert os.get_blocking(reader.fd()) is True

    def test_read_without_deadline_waits_on_non_blocking_descriptor(self, pipe):
        reader, writer = pipe
        reader.set_write_deadline(_soon(5000))
        timer = threading.Timer(0.1, lambda: os.write(writer.fd(), b"late"))
        timer.start()
        buf = bytearray(4)
        assert reader.read(buf) == 4
        timer.join()
        assert bytes(buf) == b"late"
