import errno
import os
import struct
import zlib
from pathlib import Path

import pytest
from PIL import Image

from image_upload.models.upload_model import TRANSPORT_ERROR_MESSAGES, TransportError, UploadState
from image_upload.services.image_service import ImageService
from image_upload.services.upload_service import CAPABILITY_ERROR, NOT_SELECTED_ERROR, ImageUpload


class _NoSignatureSupport(ImageService):
    def is_available(self) -> bool:
        return False


def _selected(record, storage_dir: Path) -> ImageUpload:
    upload = ImageUpload({"image": record}).set_storage_directory(str(storage_dir))
    assert upload.select("image")
    return upload


# ---- select / transport codes ----
@pytest.mark.parametrize(
    "code",
    [c for c in TransportError if c is not TransportError.OK],
)
def test_select_maps_transport_error_codes(make_image, make_record, code) -> None:
    upload = ImageUpload({"image": make_record(make_image(), error=int(code))})

    result = upload.select("image")

    assert not result
    assert result.error == TRANSPORT_ERROR_MESSAGES[code]
    assert upload.get_error() == TRANSPORT_ERROR_MESSAGES[code]
    assert upload.state is UploadState.FAILED


def test_select_unknown_transport_code(make_image, make_record) -> None:
    upload = ImageUpload({"image": make_record(make_image(), error=42)})

    assert not upload.select("image")
    assert upload.get_error() == "Unknown upload error code: (42)"


def test_select_missing_key_fails() -> None:
    upload = ImageUpload({})

    assert not upload.select("avatar")
    assert upload.get_error() == "No file input found with name: (avatar)"


def test_select_ok_record(make_image, make_record) -> None:
    upload = ImageUpload({"image": make_record(make_image())})

    assert upload.select("image")
    assert upload.get_error() == ""
    assert upload.state is UploadState.SELECTED
    assert upload.descriptor.raw_name == "photo.png"


def test_failed_state_is_absorbing(make_image, make_record) -> None:
    upload = ImageUpload({"image": make_record(make_image())})
    assert not upload.select("missing")

    assert not upload.select("image")
    assert not upload.upload()
    assert upload.get_error() == "No file input found with name: (missing)"


def test_missing_signature_support_is_reported_at_construction(make_image, make_record) -> None:
    upload = ImageUpload({"image": make_record(make_image())}, image_service=_NoSignatureSupport())

    assert upload.get_error() == CAPABILITY_ERROR
    assert not upload.select("image")


def test_validation_before_select_fails() -> None:
    upload = ImageUpload({})

    assert not upload.validate_mime()
    assert upload.get_error() == NOT_SELECTED_ERROR


# ---- mime ----
def test_validate_mime_accepts_sniffed_png(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image()), storage_dir)

    assert upload.validate_mime()
    assert upload.descriptor.sniffed_mime == "png"


def test_validate_mime_ignores_extension_and_client_type(make_image, make_record, storage_dir) -> None:
    gif = make_image("fake.png", fmt="GIF")
    record = make_record(gif, name="fake.png", type="image/png")
    upload = _selected(record, storage_dir).set_allowed_mime_types(["png"])

    assert not upload.validate_mime()
    assert upload.descriptor.sniffed_mime == "gif"
    assert upload.get_error() == "Invalid File! Only (png) image types are allowed"


def test_validate_mime_lists_configured_types_in_order(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image()), storage_dir).set_allowed_mime_types(["gif", "jpeg"])

    assert not upload.validate_mime()
    assert upload.get_error() == "Invalid File! Only (gif, jpeg) image types are allowed"


def test_validate_mime_rejects_non_image(tmp_path, make_record, storage_dir) -> None:
    text = tmp_path / "notes.jpg"
    text.write_bytes(b"hello text")
    upload = _selected(make_record(text, name="notes.jpg"), storage_dir)

    assert not upload.validate_mime()
    assert upload.descriptor.sniffed_mime is None
    assert upload.get_error() == "Invalid File! Only (jpeg, png, gif, jpg) image types are allowed"


# ---- size ----
@pytest.mark.parametrize("total", [100, 150, 400])
def test_validate_size_inclusive_bounds(make_image, make_record, storage_dir, total) -> None:
    upload = _selected(make_record(make_image(total_bytes=total)), storage_dir)
    upload.set_size_bounds(100, 400)

    assert upload.validate_size()


@pytest.mark.parametrize("total, bounds", [(199, (200, 400)), (401, (100, 400))])
def test_validate_size_out_of_bounds(make_image, make_record, storage_dir, total, bounds) -> None:
    upload = _selected(make_record(make_image(total_bytes=total)), storage_dir)
    upload.set_size_bounds(*bounds)

    assert not upload.validate_size()
    low, high = bounds
    assert upload.get_error() == (
        f"Image size should be minimum {low} bytes ({low // 1000} kb), "
        f"upto maximum {high} bytes ({high // 1000} kb)"
    )


def test_validate_size_rejects_declared_size_mismatch(make_image, make_record, storage_dir) -> None:
    staged = make_image(total_bytes=300)
    upload = _selected(make_record(staged, size=200), storage_dir)

    assert not upload.validate_size()
    assert upload.get_error() == "Image size mismatch: declared (200) bytes, received (300) bytes"


def test_set_size_bounds_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        ImageUpload({}).set_size_bounds(500, 100)


# ---- dimensions ----
def test_validate_dimension_inclusive_bounds(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image(size=(300, 200))), storage_dir)
    upload.set_dimension_bounds(300, 200)

    assert upload.validate_dimension()
    assert (upload.descriptor.width, upload.descriptor.height) == (300, 200)


def test_validate_dimension_height_checked_first(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image(size=(300, 200))), storage_dir)
    upload.set_dimension_bounds(100, 100)

    assert not upload.validate_dimension()
    assert upload.get_error() == "Image height should be smaller than (100) pixels"


def test_validate_dimension_width_message_reports_width_bound(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image(size=(300, 200))), storage_dir)
    upload.set_dimension_bounds(250, 1000)

    assert not upload.validate_dimension()
    assert upload.get_error() == "Image width should be smaller than (250) pixels"


def _png_header_only(path: Path, width: int, height: int, total_bytes: int) -> Path:
    """PNG с заголовком заданных габаритов и пустыми данными: Pillow читает только IHDR."""
    def chunk(kind: bytes, data: bytes) -> bytes:
        crc = zlib.crc32(kind + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    body = (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", ihdr)
        + chunk(b"IDAT", zlib.compress(b"\0" * 64))
        + chunk(b"IEND", b"")
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(body.ljust(total_bytes, b"\0"))
    return path


def test_validate_dimension_reports_huge_header_as_height(tmp_path, make_record, storage_dir) -> None:
    staged = _png_header_only(tmp_path / "staging" / "huge.tmp", 20000, 20000, 5000)
    upload = _selected(make_record(staged), storage_dir)

    assert not upload.is_valid()
    assert upload.descriptor.sniffed_mime == "png"
    assert upload.get_error() == "Image height should be smaller than (5000) pixels"


def test_huge_header_leaves_pillow_pixel_limit_untouched(tmp_path) -> None:
    staged = _png_header_only(tmp_path / "huge.png", 20000, 20000, 500)
    limit = Image.MAX_IMAGE_PIXELS

    assert ImageService().read_dimensions(staged) == (20000, 20000)
    assert Image.MAX_IMAGE_PIXELS == limit


# ---- is_valid ordering ----
def test_is_valid_stops_at_first_error(tmp_path, make_record, storage_dir) -> None:
    # both the type and the size are wrong; the type check runs first
    text = tmp_path / "tiny.jpg"
    text.write_bytes(b"hello text")
    upload = _selected(make_record(text), storage_dir)

    result = upload.is_valid()

    assert not result
    assert result.error.startswith("Invalid File!")
    assert upload.descriptor.width is None


def test_is_valid_marks_validated(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image(total_bytes=500)), storage_dir)

    assert upload.is_valid()
    assert upload.state is UploadState.VALIDATED


# ---- upload ----
def test_upload_jpeg_with_defaults(make_image, make_record, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    staged = make_image("php1234.tmp", fmt="JPEG", size=(2000, 1500), total_bytes=50_000)
    upload = ImageUpload({"image": make_record(staged, name="holiday.jpg", type="image/jpeg")})
    assert upload.select("image")

    result = upload.upload()

    assert result, upload.get_error()
    image = result.image
    assert (image.width, image.height, image.mime) == (2000, 1500, "jpeg")
    assert image.size == 50_000
    assert image.storage == "uploads"
    assert image.path == os.path.join("uploads", f"{image.name}.jpeg")
    assert (tmp_path / image.path).is_file()
    assert not staged.exists()
    assert upload.state is UploadState.PERSISTED


def test_upload_text_file_renamed_to_jpg_writes_nothing(tmp_path, make_record, storage_dir) -> None:
    text = tmp_path / "fake.jpg"
    text.write_bytes(b"0123456789")
    upload = ImageUpload({"image": make_record(text, name="fake.jpg", type="image/jpeg")})
    upload.set_storage_directory(str(storage_dir))
    assert upload.select("image")

    assert not upload.upload()
    assert upload.get_error() != ""
    assert text.exists()
    assert not storage_dir.exists()


def test_upload_large_png_fails_size_check(make_image, make_record, storage_dir) -> None:
    staged = make_image(fmt="PNG", size=(64, 64), total_bytes=6_000_000)
    upload = _selected(make_record(staged), storage_dir)

    assert not upload.upload()
    assert "100 bytes" in upload.get_error()
    assert "5000 kb" in upload.get_error()
    assert staged.exists()


def test_upload_to_non_writable_directory_fails_before_move(make_image, make_record, tmp_path, monkeypatch) -> None:
    locked = tmp_path / "locked"
    locked.mkdir()
    real_access = os.access
    monkeypatch.setattr(
        os, "access", lambda p, mode: False if Path(p) == locked else real_access(p, mode)
    )
    staged = make_image(total_bytes=500)
    upload = _selected(make_record(staged), locked)

    assert not upload.upload()
    assert upload.get_error() == f"Can not create a directory '{locked}', please check write permission"
    assert staged.exists()
    assert list(locked.iterdir()) == []


def test_upload_uses_sanitized_explicit_name(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image(total_bytes=500)), storage_dir)
    upload.set_name("../my <b>avatar</b>")

    result = upload.upload()

    assert result, upload.get_error()
    assert result.image.name == "my_avatar"
    assert (storage_dir / "my_avatar.png").is_file()


def test_upload_is_not_repeated_once_persisted(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image(total_bytes=500)), storage_dir)
    first = upload.upload()

    assert upload.upload() is first


def test_upload_two_keys_on_one_instance_stores_two_files(make_image, make_record, storage_dir) -> None:
    files = {
        "first": make_record(make_image("a.tmp", total_bytes=500)),
        "second": make_record(make_image("b.tmp", total_bytes=600)),
    }
    upload = ImageUpload(files).set_storage_directory(str(storage_dir))

    assert upload.select("first")
    first = upload.upload()
    assert upload.select("second")
    second = upload.upload()

    assert first and second, upload.get_error()
    assert first.image.path != second.image.path
    assert Path(first.image.path).stat().st_size == 500
    assert Path(second.image.path).stat().st_size == 600
    assert len(list(storage_dir.iterdir())) == 2


def test_explicit_name_applies_to_one_upload_only(make_image, make_record, storage_dir) -> None:
    files = {
        "first": make_record(make_image("a.tmp", total_bytes=500)),
        "second": make_record(make_image("b.tmp", total_bytes=500)),
    }
    upload = ImageUpload(files).set_storage_directory(str(storage_dir)).set_name("cover")

    assert upload.select("first")
    first = upload.upload()
    assert upload.select("second")
    second = upload.upload()

    assert first.image.name == "cover"
    assert second, upload.get_error()
    assert second.image.name != "cover"
    assert (storage_dir / "cover.png").stat().st_size == 500


def test_upload_creates_nested_storage_directory(make_image, make_record, tmp_path) -> None:
    nested = tmp_path / "a" / "b" / "c"
    upload = _selected(make_record(make_image(total_bytes=500)), nested)

    result = upload.upload()

    assert result, upload.get_error()
    assert Path(result.image.path).is_file()
    assert Path(result.image.path).parent == nested


def test_upload_across_filesystems(make_image, make_record, storage_dir, monkeypatch) -> None:
    staged = make_image(total_bytes=500)
    real_replace = os.replace

    def fake_replace(src, dst):
        if Path(src) == staged:
            raise OSError(errno.EXDEV, "Invalid cross-device link")
        return real_replace(src, dst)

    monkeypatch.setattr(os, "replace", fake_replace)
    upload = _selected(make_record(staged), storage_dir)

    result = upload.upload()

    assert result, upload.get_error()
    assert Path(result.image.path).stat().st_size == 500
    assert not staged.exists()
    assert [p.name for p in storage_dir.iterdir()] == [Path(result.image.path).name]


def test_result_serializes_to_flat_json(make_image, make_record, storage_dir) -> None:
    upload = _selected(make_record(make_image(size=(12, 8), total_bytes=500)), storage_dir)

    result = upload.upload()

    assert result.image.to_dict() == {
        "name": result.image.name,
        "mime": "png",
        "width": 12,
        "height": 8,
        "size": 500,
        "storage": str(storage_dir),
        "path": result.image.path,
    }
    assert '"mime": "png"' in result.image.to_json()
