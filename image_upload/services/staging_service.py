"""Подготовка локального файла в виде записи транспорта.

В веб-приложении запись о файле приходит от слоя обработки запросов. В настольном
инспекторе её роль играет этот сервис: файл копируется во временный каталог
(оригинал не перемещается при сохранении) и описывается словарём
`{name, type, tmp_name, error, size}`.
"""
from __future__ import annotations

import mimetypes
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from image_upload.models.upload_model import TransportError


class StagingService:
    def __init__(self, staging_root: Optional[str | Path] = None) -> None:
        self._staging_root = Path(staging_root) if staging_root else None

    def stage(self, file_path: str | Path) -> Dict[str, Any]:
        """Копирует файл во временный каталог и возвращает запись транспорта.

        Ошибки чтения исходного файла не бросаются, а отражаются кодом `error`,
        как это сделал бы сервер.
        """
        source = Path(file_path)
        content_type = mimetypes.guess_type(source.name)[0] or "application/octet-stream"
        if not source.is_file():
            return self._record(source.name, content_type, "", TransportError.NO_FILE, 0)

        staging_dir = tempfile.mkdtemp(prefix="upload-", dir=self._staging_root)
        target = Path(staging_dir) / "payload.tmp"
        try:
            shutil.copyfile(source, target)
        except OSError:
            shutil.rmtree(staging_dir, ignore_errors=True)
            return self._record(source.name, content_type, "", TransportError.CANT_WRITE, 0)
        return self._record(
            source.name, content_type, str(target), TransportError.OK, target.stat().st_size
        )

    def cleanup(self, record: Dict[str, Any]) -> None:
        """Удаляет временный каталог записи (если файл не был перемещён, то вместе с ним)."""
        tmp_name = record.get("tmp_name")
        if tmp_name:
            shutil.rmtree(Path(tmp_name).parent, ignore_errors=True)

    @staticmethod
    def _record(name: str, content_type: str, tmp_name: str, error: int, size: int) -> Dict[str, Any]:
        return {
            "name": name,
            "type": content_type,
            "tmp_name": tmp_name,
            "error": int(error),
            "size": size,
        }
