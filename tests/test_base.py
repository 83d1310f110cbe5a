"""Tests for FileInfo and the File protocol."""

import os
import stat

import pytest

from fileshim import File, FileInfo, MockFile, RawConn, create


class TestFileInfo:
    def test_from_stat(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_bytes(b"12345")
        st = os.stat(path)
        info = FileInfo.from_stat("f.txt", st)
        assert info.name == "f.txt"
        assert info.size == 5
        assert info.mode == st.st_mode
        assert info.mod_time.timestamp() == pytest.approx(st.st_mtime, abs=1e-5)
        assert info.sys is st

    def test_stat_compatible_properties(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_bytes(b"abc")
        info = FileInfo.from_stat("f.txt", os.stat(path))
        assert info.st_size == 3
        assert stat.S_ISREG(info.st_mode)
        assert info.st_mtime == pytest.approx(os.stat(path).st_mtime, abs=1e-5)

    def test_is_dir_and_perm(self, tmp_path):
        info = FileInfo.from_stat(tmp_path.name, os.stat(tmp_path))
        assert info.is_dir is True
        assert info.perm == stat.S_IMODE(os.stat(tmp_path).st_mode)


class TestFileProtocol:
    def test_mock_conforms(self):
        assert isinstance(MockFile(), File)

    def test_incomplete_object_does_not_conform(self):
        class ReadOnly:
            def read(self, b):
                return 0

            def name(self):
                return "partial"

        assert not isinstance(ReadOnly(), File)

    def test_raw_conn_conforms(self, tmp_path):
        with create(str(tmp_path / "f.txt")) as f:
            assert isinstance(f.syscall_conn(), RawConn)
