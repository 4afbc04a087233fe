import pytest

from image_upload.models.config_model import UploadConfig
from image_upload.models.upload_model import (
    TransportError,
    UploadDescriptor,
    UploadRecord,
    UploadResult,
    transport_error_message,
)


def test_default_config_values() -> None:
    config = UploadConfig()

    assert config.allowed_mime_types == ("jpeg", "png", "gif", "jpg")
    assert (config.min_size, config.max_size) == (100, 5_000_000)
    assert (config.max_width, config.max_height) == (5000, 5000)
    assert (config.storage_dir, config.permission) == ("uploads", 0o666)


def test_config_rejects_bad_bounds() -> None:
    with pytest.raises(ValueError):
        UploadConfig().with_dimension(0, 100)
    with pytest.raises(ValueError):
        UploadConfig().with_mime_types([" "])


def test_record_from_mapping_tolerates_missing_fields() -> None:
    record = UploadRecord.from_mapping({"name": "a.png", "size": "120"})

    assert record == UploadRecord(name="a.png", type="", tmp_name="", error=0, size=120)


def test_descriptor_from_record() -> None:
    record = UploadRecord("a.png", "image/png", "/tmp/x", 0, 120)

    descriptor = UploadDescriptor.from_record(record)

    assert (descriptor.raw_name, descriptor.temp_path, descriptor.declared_size) == ("a.png", "/tmp/x", 120)
    assert descriptor.error == ""


def test_result_truthiness() -> None:
    assert UploadResult.success()
    assert not UploadResult.failure("nope")


def test_transport_ok_has_empty_message() -> None:
    assert transport_error_message(TransportError.OK) == ""
