"""Сценарий «загрузить локальный файл» для настольного инспектора.

Принципы:
- SRP: связывает `StagingService` и `ImageUpload`, ничего не знает об UI.
- DIP: сервисы передаются через конструктор, что упрощает тесты.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from image_upload.models.config_model import UploadConfig
from image_upload.models.image_model import FileInfo
from image_upload.models.upload_model import UploadResult
from image_upload.services.image_service import ImageService
from image_upload.services.staging_service import StagingService
from image_upload.services.upload_service import ImageUpload

logger = logging.getLogger(__name__)

UPLOAD_KEY = "image"


class InspectorService:
    def __init__(
        self,
        staging_service: Optional[StagingService] = None,
        image_service: Optional[ImageService] = None,
    ) -> None:
        self._staging = staging_service or StagingService()
        self._images = image_service or ImageService()

    def describe(self, file_path: str | Path) -> FileInfo:
        """Читает размер, тип и габариты файла по его содержимому.

        Raises:
            OSError: если файл недоступен (удалён, нет прав).
        """
        path = Path(file_path)
        size = path.stat().st_size
        return FileInfo(
            path=path,
            size=size,
            mime=self._images.sniff_mime(path),
            dimensions=self._images.read_dimensions(path),
        )

    def upload_file(
        self,
        file_path: str | Path,
        config: UploadConfig,
        name: Optional[str] = None,
    ) -> UploadResult:
        """Копирует файл во временный каталог и прогоняет его через `ImageUpload`.

        Временный каталог удаляется в любом случае; исходный файл не изменяется.
        """
        record = self._staging.stage(file_path)
        try:
            upload = ImageUpload({UPLOAD_KEY: record}, config=config, image_service=self._images)
            upload.set_name(name)
            result = upload.select(UPLOAD_KEY)
            if result:
                result = upload.upload()
        finally:
            self._staging.cleanup(record)
        if not result:
            logger.info("Upload of %s failed: %s", file_path, result.error)
        return result
