"""Определение типа и размеров изображения по его содержимому.

Принципы:
- SRP: класс отвечает только за чтение заголовка файла средствами Pillow.
- Тип определяется по сигнатуре файла, а не по расширению или заявленному клиентом типу.
- Ошибки Pillow не выходят наружу: нераспознанный файл даёт `None`.
"""
from __future__ import annotations

import logging
import threading
import warnings
from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Формат Pillow -> имя типа (оно же расширение сохраняемого файла).
FORMAT_TO_MIME: Dict[str, str] = {
    "GIF": "gif",
    "JPEG": "jpeg",
    "MPO": "jpeg",
    "PNG": "png",
    "PSD": "psd",
    "BMP": "bmp",
    "TIFF": "tiff",
    "JPEG2000": "jp2",
    "XBM": "xbm",
    "ICO": "ico",
    "WEBP": "webp",
}

REQUIRED_FORMATS: Tuple[str, ...] = ("JPEG", "PNG", "GIF")

# Image.MAX_IMAGE_PIXELS общий для процесса; снимаем его только на время чтения заголовка.
_HEADER_LOCK = threading.Lock()


class ImageService:
    def is_available(self) -> bool:
        """Проверяет, что в Pillow зарегистрированы нужные декодеры заголовков."""
        Image.init()
        return all(fmt in Image.OPEN for fmt in REQUIRED_FORMATS)

    def sniff_mime(self, file_path: str | Path) -> Optional[str]:
        """Возвращает тип по сигнатуре файла или `None`, если формат не из таблицы."""
        header = self._read_header(file_path)
        return header[0] if header else None

    def read_dimensions(self, file_path: str | Path) -> Optional[Tuple[int, int]]:
        """Возвращает `(width, height)` из заголовка, не декодируя пиксели."""
        header = self._read_header(file_path)
        return (header[1], header[2]) if header else None

    def load_preview(self, file_path: str | Path) -> Image.Image:
        """Загружает изображение для предпросмотра (в режиме RGBA).

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ValueError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        try:
            with Image.open(path) as pil_image:
                return pil_image.convert("RGBA")
        except UnidentifiedImageError as exc:
            raise ValueError(f"Файл не является изображением: {path}") from exc
        except Image.DecompressionBombError as exc:
            raise ValueError(f"Изображение слишком велико для предпросмотра: {path}") from exc

    def _read_header(self, file_path: str | Path) -> Optional[Tuple[str, int, int]]:
        path = Path(file_path)
        if not path.is_file():
            return None
        Image.init()
        formats = [fmt for fmt in FORMAT_TO_MIME if fmt in Image.OPEN]
        # Пиксели не декодируются, поэтому габариты любого размера читаем как есть
        # и оставляем оценку ограничений на validate_dimension.
        with _HEADER_LOCK, warnings.catch_warnings():
            warnings.simplefilter("ignore", Image.DecompressionBombWarning)
            max_pixels = Image.MAX_IMAGE_PIXELS
            Image.MAX_IMAGE_PIXELS = None
            try:
                with Image.open(path, formats=formats) as pil_image:
                    mime = FORMAT_TO_MIME.get(pil_image.format or "")
                    width, height = pil_image.size
            except (UnidentifiedImageError, OSError) as exc:
                logger.debug("Signature not recognised for %s: %s", path, exc)
                return None
            finally:
                Image.MAX_IMAGE_PIXELS = max_pixels
        if mime is None:
            return None
        return mime, int(width), int(height)
