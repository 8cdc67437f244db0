"""Write-once container ID file."""

import pytest

from berth.cidfile import CIDFile, CIDFileExistsError, CIDFileWriteError


def test_write_records_id(tmp_path):
    path = tmp_path / "cid"
    with CIDFile.open(str(path)) as cid:
        cid.write("c0ffee")
        assert cid.written
    assert path.read_text() == "c0ffee"
    assert cid.closed


def test_open_existing_path_fails_and_keeps_contents(tmp_path):
    path = tmp_path / "cid"
    path.write_text("previous-container")

    with pytest.raises(CIDFileExistsError, match="Container ID file found"):
        CIDFile.open(str(path))

    assert path.read_text() == "previous-container"


def test_open_existing_empty_file_fails(tmp_path):
    path = tmp_path / "cid"
    path.touch()
    with pytest.raises(CIDFileExistsError):
        CIDFile.open(str(path))
    assert path.exists()


def test_release_without_write_removes_file(tmp_path):
    path = tmp_path / "cid"
    with CIDFile.open(str(path)):
        assert path.exists()
    assert not path.exists()


def test_release_on_exception_removes_file(tmp_path):
    path = tmp_path / "cid"
    with pytest.raises(RuntimeError):
        with CIDFile.open(str(path)):
            raise RuntimeError("creation failed")
    assert not path.exists()


def test_second_write_rejected(tmp_path):
    path = tmp_path / "cid"
    with CIDFile.open(str(path)) as cid:
        cid.write("first")
        with pytest.raises(CIDFileWriteError):
            cid.write("second")
    assert path.read_text() == "first"


def test_write_after_release_rejected(tmp_path):
    cid = CIDFile.open(str(tmp_path / "cid"))
    cid.release()
    with pytest.raises(CIDFileWriteError):
        cid.write("late")


def test_release_is_idempotent(tmp_path):
    cid = CIDFile.open(str(tmp_path / "cid"))
    cid.write("abc")
    cid.release()
    cid.release()
    assert (tmp_path / "cid").read_text() == "abc"


def test_open_in_missing_directory_is_write_error(tmp_path):
    with pytest.raises(CIDFileWriteError, match="Failed to create"):
        CIDFile.open(str(tmp_path / "missing" / "cid"))
