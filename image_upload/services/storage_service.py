"""Каталог хранения и атомарное перемещение загруженного файла.

Принципы:
- SRP: только файловые операции (проверка прав, создание каталога, перемещение).
- Ошибки ОС переводятся в `UploadResult` с текстом; исключения наружу не выходят.
"""
from __future__ import annotations

import errno
import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

from image_upload.models.upload_model import UploadResult

logger = logging.getLogger(__name__)


def _directory_mode(permission: int) -> int:
    # каталогу с правом чтения нужен и бит поиска, иначе в него нельзя записать файл
    return permission | ((permission & 0o444) >> 2)


class StorageService:
    def is_directory_valid(self, directory: str | Path) -> bool:
        """Каталог существует и доступен на запись, либо его можно создать."""
        path = Path(directory)
        if path.exists():
            return path.is_dir() and os.access(path, os.W_OK | os.X_OK)
        ancestor = path.absolute().parent
        while not ancestor.exists():
            ancestor = ancestor.parent
        return ancestor.is_dir() and os.access(ancestor, os.W_OK | os.X_OK)

    def create_storage(self, directory: str | Path, permission: int = 0o666) -> UploadResult:
        """Проверяет права и при необходимости рекурсивно создаёт каталог."""
        if not self.is_directory_valid(directory):
            return UploadResult.failure(
                f"Can not create a directory '{directory}', please check write permission"
            )
        path = Path(directory)
        if not path.is_dir():
            try:
                os.makedirs(path, mode=_directory_mode(permission), exist_ok=True)
            except OSError as exc:
                logger.debug("makedirs(%s) failed: %s", path, exc)
                return UploadResult.failure(f"Error! directory '{directory}' could not be created")
            logger.info("Created storage directory %s", path)
        return UploadResult.success()

    def move_into_place(self, source: str | Path, destination: str | Path) -> UploadResult:
        """Атомарно перемещает временный файл в место назначения.

        В пределах одной файловой системы это `os.replace`. Между файловыми системами
        файл копируется во временный скрытый файл рядом с местом назначения и уже он
        переименовывается, так что частично записанный файл по итоговому пути не виден.
        """
        src = Path(source)
        dest = Path(destination)
        try:
            mode = os.lstat(src).st_mode
        except OSError:
            return UploadResult.failure(f"Uploaded file '{src.name}' is missing")
        if not stat.S_ISREG(mode):
            return UploadResult.failure(f"Uploaded file '{src.name}' is not a regular file")

        try:
            os.replace(src, dest)
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                logger.debug("replace(%s, %s) failed: %s", src, dest, exc)
                return UploadResult.failure(f"Image could not be saved to '{dest}'")
            return self._move_across_devices(src, dest)
        return UploadResult.success()

    def _move_across_devices(self, src: Path, dest: Path) -> UploadResult:
        try:
            fd, staging = tempfile.mkstemp(prefix=".", suffix=".part", dir=dest.parent)
        except OSError as exc:
            logger.debug("mkstemp in %s failed: %s", dest.parent, exc)
            return UploadResult.failure(f"Image could not be saved to '{dest}'")
        os.close(fd)
        try:
            shutil.copyfile(src, staging)
            os.replace(staging, dest)
        except OSError as exc:
            logger.debug("cross-device move %s -> %s failed: %s", src, dest, exc)
            if os.path.exists(staging):
                os.unlink(staging)
            return UploadResult.failure(f"Image could not be saved to '{dest}'")
        try:
            os.unlink(src)
        except OSError as exc:
            logger.warning("Could not remove staged file %s: %s", src, exc)
        return UploadResult.success()
