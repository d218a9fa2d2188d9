"""Tests for chrio.persistence.photos — session photo storage."""

from __future__ import annotations

import base64

import pytest

from chrio.errors import NotFound, StorageUnavailable, ValidationError
from chrio.persistence.photos import PhotoStore

_JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF"


def _encoded(data: bytes = _JPEG) -> str:
    return base64.b64encode(data).decode("ascii")


def test_photo_path_layout(tmp_path):
    store = PhotoStore(tmp_path)

    path = store.photo_path(7, "Alice", 3, "right_lateral")

    assert path == tmp_path / "7_Alice" / "session_3" / "right_lateral_Alice.jpg"


def test_save_image_writes_decoded_bytes(tmp_path):
    store = PhotoStore(tmp_path)

    saved = store.save_image(1, "Alice", 1, "anterior", _encoded())

    assert saved == str(tmp_path / "1_Alice" / "session_1" / "anterior_Alice.jpg")
    with open(saved, "rb") as f:
        assert f.read() == _JPEG


def test_save_image_strips_data_url_header(tmp_path):
    store = PhotoStore(tmp_path)

    saved = store.save_image(1, "Alice", 2, "posterior", "data:image/jpeg;base64," + _encoded())

    with open(saved, "rb") as f:
        assert f.read() == _JPEG


def test_save_image_overwrites_existing_photo(tmp_path):
    store = PhotoStore(tmp_path)
    store.save_image(1, "Alice", 1, "anterior", _encoded(b"old"))

    saved = store.save_image(1, "Alice", 1, "anterior", _encoded(b"new"))

    with open(saved, "rb") as f:
        assert f.read() == b"new"


def test_save_image_rejects_unknown_position(tmp_path):
    with pytest.raises(ValidationError, match="Unknown image type"):
        PhotoStore(tmp_path).save_image(1, "Alice", 1, "overhead", _encoded())


def test_save_image_rejects_invalid_base64(tmp_path):
    with pytest.raises(ValidationError, match="base64"):
        PhotoStore(tmp_path).save_image(1, "Alice", 1, "anterior", "not base64!!")


def test_save_image_unwritable_root(tmp_path):
    blocker = tmp_path / "photos"
    blocker.write_text("x")

    with pytest.raises(StorageUnavailable):
        PhotoStore(blocker).save_image(1, "Alice", 1, "anterior", _encoded())


def test_read_image_base64_returns_data_url(tmp_path):
    store = PhotoStore(tmp_path)
    saved = store.save_image(4, "Bob", 1, "left_lateral", _encoded())

    assert store.read_image_base64(saved) == "data:image/jpeg;base64," + _encoded()


def test_read_missing_image(tmp_path):
    with pytest.raises(NotFound):
        PhotoStore(tmp_path).read_image_base64(str(tmp_path / "missing.jpg"))
