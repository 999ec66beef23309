import io

import pytest

from restaurant_api.errors import ValidationError
from restaurant_api.storage import ImageStore, remove_image


def test_save_writes_uniquely_named_file(tmp_path):
    store = ImageStore(str(tmp_path / "uploads"))
    first = store.save("Ramen.JPG", io.BytesIO(b"jpeg"), "image/jpeg")
    second = store.save("Ramen.JPG", io.BytesIO(b"jpeg"), "image/jpeg")
    assert first != second
    assert first.endswith(".jpg")
    with open(first, "rb") as f:
        assert f.read() == b"jpeg"


def test_save_rejects_non_images(tmp_path):
    store = ImageStore(str(tmp_path))
    with pytest.raises(ValidationError, match="Not an image"):
        store.save("script.sh", io.BytesIO(b"#!/bin/sh"), "application/x-sh")
    assert list(tmp_path.iterdir()) == []


def test_remove_image(tmp_path):
    img = tmp_path / "a.png"
    img.write_bytes(b"png")
    assert remove_image(str(img)) is True
    assert remove_image(str(img)) is False


def test_remove_image_propagates_other_errors(tmp_path):
    # a directory cannot be unlinked like a file
    with pytest.raises(OSError):
        remove_image(str(tmp_path))
