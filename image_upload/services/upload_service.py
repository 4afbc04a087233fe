"""Проверка и сохранение одного загруженного изображения.

Конвейер: выбор записи (`select`) -> проверка типа по сигнатуре -> размера -> габаритов ->
создание каталога -> атомарное перемещение временного файла.

Принципы:
- SRP: класс только оркеструет шаги; чтение заголовков, имена и файловые операции
  делегированы сервисам.
- Каждая операция возвращает `UploadResult`; `get_error()` лишь читает последний результат.
- Первая ошибка переводит загрузку в состояние FAILED, из которого выхода нет.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from image_upload.models.config_model import UploadConfig
from image_upload.models.image_model import StoredImage
from image_upload.models.upload_model import (
    TransportError,
    UploadDescriptor,
    UploadRecord,
    UploadResult,
    UploadState,
    transport_error_message,
)
from image_upload.services import naming_service
from image_upload.services.image_service import ImageService
from image_upload.services.storage_service import StorageService

logger = logging.getLogger(__name__)

CAPABILITY_ERROR = (
    "Image signature detection is not available. "
    "Please install Pillow with JPEG, PNG and GIF support"
)
NOT_SELECTED_ERROR = "No image selected. Call select() with an upload key first"


class ImageUpload:
    """Проверяет и сохраняет один файл из набора записей транспорта.

    Пример::

        upload = ImageUpload(files).set_size_bounds(100, 2_000_000)
        if upload.select("picture") and (result := upload.upload()):
            print(result.image.path)
        else:
            print(upload.get_error())
    """

    def __init__(
        self,
        files: Optional[Mapping[str, Mapping[str, Any]]] = None,
        config: Optional[UploadConfig] = None,
        image_service: Optional[ImageService] = None,
        storage_service: Optional[StorageService] = None,
    ) -> None:
        self._files = dict(files or {})
        self._config = config or UploadConfig()
        self._images = image_service or ImageService()
        self._storage = storage_service or StorageService()
        self._pending_name: Optional[str] = None
        self._descriptor: Optional[UploadDescriptor] = None
        self._state = UploadState.FRESH
        self._last = UploadResult.success()

        if not self._images.is_available():
            self._fail(CAPABILITY_ERROR)

    # ---- Public API ----
    @property
    def config(self) -> UploadConfig:
        return self._config

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def descriptor(self) -> Optional[UploadDescriptor]:
        return self._descriptor

    def get_error(self) -> str:
        """Текст ошибки последней операции или пустая строка."""
        return self._last.error

    def select(self, key: str) -> UploadResult:
        """Выбирает запись транспорта по ключу и проверяет её код состояния."""
        if self._state is UploadState.FAILED:
            return self._last
        raw = self._files.get(key)
        if raw is None:
            return self._fail(f"No file input found with name: ({key})")

        record = UploadRecord.from_mapping(raw)
        self._descriptor = UploadDescriptor.from_record(record)
        self._descriptor.final_name, self._pending_name = self._pending_name, None
        if record.error != TransportError.OK:
            return self._fail(transport_error_message(record.error))

        self._state = self._descriptor.state = UploadState.SELECTED
        logger.debug("Selected upload %r (%s)", key, record.name)
        return self._record(UploadResult.success())

    def set_allowed_mime_types(self, mime_types: Iterable[str]) -> ImageUpload:
        self._config = self._config.with_mime_types(mime_types)
        return self

    def set_size_bounds(self, min_size: int, max_size: int) -> ImageUpload:
        self._config = self._config.with_size(min_size, max_size)
        return self

    def set_dimension_bounds(self, max_width: int, max_height: int) -> ImageUpload:
        self._config = self._config.with_dimension(max_width, max_height)
        return self

    def set_storage_directory(self, directory: str = "uploads", permission: int = 0o666) -> ImageUpload:
        """Задаёт каталог хранения; сам каталог создаётся при сохранении или `resolve_storage()`."""
        self._config = self._config.with_storage(directory, permission)
        return self

    def set_name(self, name: Optional[str] = None) -> ImageUpload:
        self.resolve_name(name)
        return self

    def resolve_name(self, explicit: Optional[str] = None) -> str:
        """Фиксирует итоговое имя: очищенное явное или сгенерированное.

        Имя относится к одной загрузке: к текущей, если она ещё не сохранена,
        иначе к следующей выбранной через `select()`.
        """
        name = naming_service.resolve_name(explicit)
        descriptor = self._descriptor
        if descriptor is not None and descriptor.state is not UploadState.PERSISTED:
            descriptor.final_name = name
        else:
            self._pending_name = name
        return name

    def resolve_storage(self, directory: Optional[str] = None, permission: Optional[int] = None) -> UploadResult:
        """Проверяет (и при необходимости создаёт) каталог хранения."""
        if self._state is UploadState.FAILED:
            return self._last
        if directory is not None or permission is not None:
            self._config = self._config.with_storage(
                directory if directory is not None else self._config.storage_dir,
                permission if permission is not None else self._config.permission,
            )
        result = self._storage.create_storage(self._config.storage_dir, self._config.permission)
        if not result:
            return self._fail(result.error)
        if self._descriptor is not None:
            self._descriptor.storage_dir = self._config.storage_dir
        return self._record(result)

    def validate_mime(self) -> UploadResult:
        """Тип по сигнатуре файла должен входить в разрешённый список."""
        descriptor = self._require_selected()
        if descriptor is None:
            return self._last
        if descriptor.sniffed_mime is None:
            descriptor.sniffed_mime = self._images.sniff_mime(descriptor.temp_path)

        allowed = self._config.allowed_mime_types
        if descriptor.sniffed_mime not in allowed:
            return self._fail(
                "Invalid File! Only ({}) image types are allowed".format(", ".join(allowed))
            )
        return self._record(UploadResult.success())

    def validate_size(self) -> UploadResult:
        """Размер файла на диске в пределах [min, max] и совпадает с заявленным."""
        descriptor = self._require_selected()
        if descriptor is None:
            return self._last
        try:
            actual = os.path.getsize(descriptor.temp_path)
        except OSError:
            return self._fail(transport_error_message(TransportError.NO_FILE))
        if actual != descriptor.declared_size:
            return self._fail(
                f"Image size mismatch: declared ({descriptor.declared_size}) bytes, "
                f"received ({actual}) bytes"
            )

        min_size, max_size = self._config.min_size, self._config.max_size
        if actual < min_size or actual > max_size:
            low = f"{min_size} bytes ({min_size // 1000} kb)"
            high = f"{max_size} bytes ({max_size // 1000} kb)"
            return self._fail(f"Image size should be minimum {low}, upto maximum {high}")
        return self._record(UploadResult.success())

    def validate_dimension(self) -> UploadResult:
        """Высота и ширина не больше заданных (границы включительно)."""
        descriptor = self._require_selected()
        if descriptor is None:
            return self._last
        if descriptor.width is None or descriptor.height is None:
            dimensions = self._images.read_dimensions(descriptor.temp_path)
            if dimensions is None:
                return self._fail("Image dimensions could not be read")
            descriptor.width, descriptor.height = dimensions

        if descriptor.height > self._config.max_height:
            return self._fail(
                f"Image height should be smaller than ({self._config.max_height}) pixels"
            )
        if descriptor.width > self._config.max_width:
            return self._fail(
                f"Image width should be smaller than ({self._config.max_width}) pixels"
            )
        return self._record(UploadResult.success())

    def is_valid(self) -> UploadResult:
        """Тип -> размер -> габариты; останавливается на первой ошибке."""
        checks: Tuple[Callable[[], UploadResult], ...] = (
            self.validate_mime,
            self.validate_size,
            self.validate_dimension,
        )
        for check in checks:
            result = check()
            if not result:
                return result
        self._state = UploadState.VALIDATED
        if self._descriptor is not None:
            self._descriptor.state = UploadState.VALIDATED
        return self._last

    def upload(self) -> UploadResult:
        """Проверяет файл и перемещает его в `storage/name.mime`."""
        if self._state in (UploadState.FAILED, UploadState.PERSISTED):
            return self._last
        descriptor = self._require_selected()
        if descriptor is None:
            return self._last
        if descriptor.final_name is None:
            self.resolve_name()

        for step in (self.is_valid, self.resolve_storage):
            result = step()
            if not result:
                logger.info("Upload %r rejected: %s", descriptor.raw_name, result.error)
                return result

        path = os.path.join(
            descriptor.storage_dir, f"{descriptor.final_name}.{descriptor.sniffed_mime}"
        )
        moved = self._storage.move_into_place(descriptor.temp_path, path)
        if not moved:
            return self._fail(moved.error)

        image = StoredImage(
            name=descriptor.final_name,
            mime=descriptor.sniffed_mime,
            width=descriptor.width,
            height=descriptor.height,
            size=descriptor.declared_size,
            storage=descriptor.storage_dir,
            path=path,
        )
        self._state = descriptor.state = UploadState.PERSISTED
        logger.info("Stored %r as %s", descriptor.raw_name, path)
        return self._record(UploadResult.success(image))

    # ---- Helpers ----
    def _require_selected(self) -> Optional[UploadDescriptor]:
        if self._state is UploadState.FAILED:
            return None
        if self._descriptor is None:
            self._fail(NOT_SELECTED_ERROR)
            return None
        return self._descriptor

    def _record(self, result: UploadResult) -> UploadResult:
        self._last = result
        return result

    def _fail(self, error: str) -> UploadResult:
        self._state = UploadState.FAILED
        if self._descriptor is not None:
            self._descriptor.error = error
            self._descriptor.state = UploadState.FAILED
        return self._record(UploadResult.failure(error))
