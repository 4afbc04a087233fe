from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import pytest
from PIL import Image


def _pad(path: Path, total_bytes: Optional[int]) -> Path:
    if total_bytes is None:
        return path
    current = path.stat().st_size
    assert current <= total_bytes, f"{path.name} is already {current} bytes"
    with path.open("ab") as fh:
        fh.write(b"\0" * (total_bytes - current))
    return path


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Пишет настоящее изображение и при необходимости добивает файл нулями до нужного размера.

    Pillow читает только заголовок, поэтому хвост не влияет на тип и габариты.
    """
    def _make(
        name: str = "staged.tmp",
        fmt: str = "PNG",
        size: Tuple[int, int] = (10, 10),
        total_bytes: Optional[int] = None,
    ) -> Path:
        path = tmp_path / "staging" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        image = Image.new("RGB", size, color=(200, 40, 40))
        if fmt == "JPEG":
            image.save(path, format=fmt, quality=50, optimize=True)
        else:
            image.save(path, format=fmt)
        return _pad(path, total_bytes)

    return _make


@pytest.fixture
def make_record() -> Callable[..., Dict[str, Any]]:
    """Запись транспорта в форме `{name, type, tmp_name, error, size}` для файла на диске."""
    def _make(path: Path, name: str = "photo.png", **overrides: Any) -> Dict[str, Any]:
        record = {
            "name": name,
            "type": "image/png",
            "tmp_name": str(path),
            "error": 0,
            "size": path.stat().st_size if path.exists() else 0,
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"
