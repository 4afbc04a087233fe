"""Настройки проверки загружаемых изображений.

Принципы:
- SRP: только значения по умолчанию и проверка аргументов, без файловых операций.
- Неизменяемость (`frozen=True`): изменения через `with_*`, возвращающие новую копию.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Tuple


@dataclass(frozen=True)
class UploadConfig:
    """Ограничения для одной загрузки.

    Fields:
        allowed_mime_types: Разрешённые типы (порядок сохраняется в сообщениях об ошибке).
        min_size: Минимальный размер файла, байт.
        max_size: Максимальный размер файла, байт.
        max_width: Максимальная ширина, px.
        max_height: Максимальная высота, px.
        storage_dir: Каталог для сохранения.
        permission: Права на создаваемый каталог.
    """
    allowed_mime_types: Tuple[str, ...] = ("jpeg", "png", "gif", "jpg")
    min_size: int = 100
    max_size: int = 5_000_000
    max_width: int = 5000
    max_height: int = 5000
    storage_dir: str = "uploads"
    permission: int = 0o666

    def with_mime_types(self, mime_types: Iterable[str]) -> UploadConfig:
        types = tuple(str(t).strip().lower() for t in mime_types if str(t).strip())
        if not types:
            raise ValueError("allowed mime types must not be empty")
        return replace(self, allowed_mime_types=types)

    def with_size(self, min_size: int, max_size: int) -> UploadConfig:
        min_size, max_size = int(min_size), int(max_size)
        if min_size < 0 or max_size < min_size:
            raise ValueError(f"invalid size bounds: ({min_size}, {max_size})")
        return replace(self, min_size=min_size, max_size=max_size)

    def with_dimension(self, max_width: int, max_height: int) -> UploadConfig:
        max_width, max_height = int(max_width), int(max_height)
        if max_width <= 0 or max_height <= 0:
            raise ValueError(f"invalid dimension bounds: ({max_width}, {max_height})")
        return replace(self, max_width=max_width, max_height=max_height)

    def with_storage(self, storage_dir: str, permission: int) -> UploadConfig:
        if not str(storage_dir):
            raise ValueError("storage directory must not be empty")
        return replace(self, storage_dir=str(storage_dir), permission=int(permission))
