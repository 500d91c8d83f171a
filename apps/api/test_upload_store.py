"""Upload store file naming, path resolution and inlining"""
import os

import pytest

from exceptions import StorageError
from services.upload_store import UploadStore, UploadedFile, get_mime_type, safe_filename


@pytest.fixture
def upload_store(tmp_path):
    return UploadStore(str(tmp_path / "uploads"))


@pytest.mark.parametrize(
    "name, expected",
    [
        ("photo.jpg", "photo.jpg"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\scan 1.pdf", "scan_1.pdf"),
        ("", "file"),
        (None, "file"),
        (".hidden", "hidden"),
    ],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


def test_mime_types():
    assert get_mime_type("a/B.JPG") == "image/jpeg"
    assert get_mime_type("cert.pdf") == "application/pdf"
    assert get_mime_type("archive.zip") == "application/octet-stream"


def test_save_and_inline(upload_store):
    path = upload_store.save_partner_file(3, "clinic", UploadedFile("room.png", b"png-bytes"), stamp=1700000000000, index=1)
    assert path == "uploads/partners/3/clinic_1700000000000_1_room.png"
    assert upload_store.read_data_url(path) == "data:image/png;base64,cG5nLWJ5dGVz"


def test_resolve_refuses_paths_outside_store(upload_store):
    assert upload_store.resolve("uploads/../../secrets.txt") is None
    assert upload_store.resolve("") is None


def test_missing_file_reads_as_none(upload_store):
    assert upload_store.read_data_url("uploads/partners/1/nope.jpg") is None
    assert upload_store.read_data_url(None) is None


def test_write_failure_raises_storage_error(tmp_path):
    # A regular file where the store root should be a directory
    blocker = tmp_path / "blocked"
    blocker.write_text("x")
    store = UploadStore(str(blocker))
    with pytest.raises(StorageError):
        store.save_partner_file(1, "passport", UploadedFile("a.jpg", b"1"), stamp=1)


def test_remove_partner_files(upload_store):
    upload_store.save_partner_file(5, "passport", UploadedFile("a.jpg", b"1"), stamp=1)
    assert os.path.isdir(upload_store.partner_dir(5))
    assert upload_store.remove_partner_files(5) is True
    assert not os.path.exists(upload_store.partner_dir(5))
    # Nothing to remove is not a failure
    assert upload_store.remove_partner_files(5) is True
