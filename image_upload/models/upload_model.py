"""Модели одной загрузки: запись транспорта, дескриптор и результат операции.

Принципы:
- SRP: структуры данных без файловых операций.
- Запись транспорта неизменяема; дескриптор изменяемый и принадлежит одному `ImageUpload`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional

from image_upload.models.image_model import StoredImage


class TransportError(IntEnum):
    """Коды состояния multipart-загрузки, которые передаёт слой обработки запросов."""
    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


TRANSPORT_ERROR_MESSAGES = {
    TransportError.OK: "",
    TransportError.INI_SIZE: "Image is larger than the specified amount set by the server",
    TransportError.FORM_SIZE: "Image is larger than the specified amount specified by browser",
    TransportError.PARTIAL: "Image could not be fully uploaded. Please try again later",
    TransportError.NO_FILE: "Image is not found",
    TransportError.NO_TMP_DIR: "Can't write to disk, due to server configuration ( No tmp dir found )",
    TransportError.CANT_WRITE: "Failed to write file to disk. Please check you file permissions",
    TransportError.EXTENSION: "A server extension has halted this file upload process",
}


def transport_error_message(code: int) -> str:
    """Возвращает текст ошибки для кода транспорта (пустая строка для OK)."""
    try:
        return TRANSPORT_ERROR_MESSAGES[TransportError(code)]
    except ValueError:
        return f"Unknown upload error code: ({code})"


class UploadState(Enum):
    FRESH = "fresh"
    SELECTED = "selected"
    VALIDATED = "validated"
    PERSISTED = "persisted"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadRecord:
    """Сырая запись о файле от слоя обработки запросов.

    Поле `type` присылает клиент, в проверках оно не участвует.
    """
    name: str
    type: str
    tmp_name: str
    error: int
    size: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> UploadRecord:
        """Собирает запись из словаря вида `{name, type, tmp_name, error, size}`.

        Отсутствующие поля получают пустые значения; `error` по умолчанию OK.
        """
        try:
            size = int(raw.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        try:
            error = int(raw.get("error", TransportError.OK))
        except (TypeError, ValueError):
            error = -1
        return cls(
            name=str(raw.get("name") or ""),
            type=str(raw.get("type") or ""),
            tmp_name=str(raw.get("tmp_name") or ""),
            error=error,
            size=size,
        )


@dataclass
class UploadDescriptor:
    """Изменяемое состояние одной загрузки.

    Поля `sniffed_mime`, `width`, `height` заполняются конвейером проверки,
    `final_name` и `storage_dir` заполняются на шаге сохранения.
    """
    raw_name: str
    temp_path: str
    declared_size: int
    transport_error: int
    sniffed_mime: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    final_name: Optional[str] = None
    storage_dir: Optional[str] = None
    error: str = ""
    state: UploadState = UploadState.FRESH

    @classmethod
    def from_record(cls, record: UploadRecord) -> UploadDescriptor:
        return cls(
            raw_name=record.name,
            temp_path=record.tmp_name,
            declared_size=record.size,
            transport_error=record.error,
        )

    @property
    def failed(self) -> bool:
        return self.state is UploadState.FAILED


@dataclass(frozen=True)
class UploadResult:
    """Результат любой операции `ImageUpload`: успех/ошибка и, при сохранении, `StoredImage`."""
    ok: bool
    error: str = ""
    image: Optional[StoredImage] = field(default=None)

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, image: Optional[StoredImage] = None) -> UploadResult:
        return cls(ok=True, image=image)

    @classmethod
    def failure(cls, error: str) -> UploadResult:
        return cls(ok=False, error=error)
