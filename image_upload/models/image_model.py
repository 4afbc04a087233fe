"""Модель сохранённого изображения.

Принципы:
- SRP: только структура данных и её сериализация, без логики проверки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class StoredImage:
    """Неизменяемое описание успешно сохранённого изображения.

    Fields:
        name: Итоговое имя файла без расширения.
        mime: Тип, определённый по сигнатуре, например "jpeg".
        width: Ширина, px.
        height: Высота, px.
        size: Размер файла, байт.
        storage: Каталог хранения.
        path: Полный путь `storage/name.mime`.
    """
    name: str
    mime: str
    width: int
    height: int
    size: int
    storage: str
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class FileInfo:
    """Сведения о локальном файле до загрузки (для панели информации)."""
    path: Path
    size: int
    mime: Optional[str]
    dimensions: Optional[Tuple[int, int]]
