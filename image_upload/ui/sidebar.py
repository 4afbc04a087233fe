"""Боковая панель: выбор файла, информация о нём и параметры загрузки.

Принципы:
- SRP: управляет только UI параметров, не содержит логики проверки.
- ISP: выдаёт параметры через `get_config`/`get_name`, события через `on_*`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Tuple

import customtkinter as ctk

from image_upload.models.config_model import UploadConfig


def _parse_int(text: str, default: int) -> int:
    try:
        return int(text.strip().replace("_", ""))
    except ValueError:
        return default


class Sidebar(ctk.CTkFrame):
    """Панель инструментов с блоками: файл, информация, ограничения, сохранение."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=300, **kwargs)

        self.grid_columnconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None
        self.on_upload: Optional[Callable[[], None]] = None

        defaults = UploadConfig()
        title_font = ctk.CTkFont(size=16, weight="bold")

        # File
        self._title = ctk.CTkLabel(self, text="Файл", font=title_font)
        self._title.grid(row=0, column=0, columnspan=2, padx=8, pady=(8, 4), sticky="w")
        self._open_btn = ctk.CTkButton(self, text="Открыть изображение…", command=self._emit_open_file)
        self._open_btn.grid(row=1, column=0, columnspan=2, padx=8, pady=(0, 12), sticky="ew")

        # Info section
        self._info_title = ctk.CTkLabel(self, text="Информация", font=title_font)
        self._info_title.grid(row=2, column=0, columnspan=2, padx=8, pady=(8, 4), sticky="w")

        self._path_val = ctk.StringVar(value="—")
        self._size_val = ctk.StringVar(value="—")
        self._dims_val = ctk.StringVar(value="—")
        self._mime_val = ctk.StringVar(value="—")
        info_vars = (self._path_val, self._size_val, self._dims_val, self._mime_val)
        for offset, var in enumerate(info_vars):
            label = ctk.CTkLabel(self, textvariable=var, wraplength=270, anchor="w", justify="left")
            label.grid(row=3 + offset, column=0, columnspan=2, padx=8, pady=(0, 2), sticky="ew")

        # Limits
        self._limits_title = ctk.CTkLabel(self, text="Ограничения", font=title_font)
        self._limits_title.grid(row=10, column=0, columnspan=2, padx=8, pady=(12, 4), sticky="w")

        self._types_val = ctk.StringVar(value=", ".join(defaults.allowed_mime_types))
        self._min_size_val = ctk.StringVar(value=str(defaults.min_size))
        self._max_size_val = ctk.StringVar(value=str(defaults.max_size))
        self._max_width_val = ctk.StringVar(value=str(defaults.max_width))
        self._max_height_val = ctk.StringVar(value=str(defaults.max_height))

        self._add_field(11, "Типы (через запятую):", self._types_val, columnspan=2)
        self._add_pair(13, ("Мин. размер, Б:", self._min_size_val), ("Макс. размер, Б:", self._max_size_val))
        self._add_pair(15, ("Макс. ширина, px:", self._max_width_val), ("Макс. высота, px:", self._max_height_val))

        # Storage
        self._storage_title = ctk.CTkLabel(self, text="Сохранение", font=title_font)
        self._storage_title.grid(row=20, column=0, columnspan=2, padx=8, pady=(12, 4), sticky="w")

        self._storage_val = ctk.StringVar(value=defaults.storage_dir)
        self._permission_val = ctk.StringVar(value=oct(defaults.permission)[2:])
        self._name_val = ctk.StringVar(value="")
        self._add_pair(21, ("Каталог:", self._storage_val), ("Права (восьм.):", self._permission_val))
        self._add_field(23, "Имя (пусто: сгенерировать):", self._name_val, columnspan=2)

        self._upload_btn = ctk.CTkButton(self, text="Загрузить", command=self._emit_upload, state="disabled")
        self._upload_btn.grid(row=30, column=0, columnspan=2, padx=8, pady=(12, 8), sticky="ew")

        # filler
        self.grid_rowconfigure(99, weight=1)

    # ---- Public API ----
    def set_file_info(
        self,
        path: Path,
        size_bytes: Optional[int],
        mime: Optional[str],
        dimensions: Optional[Tuple[int, int]],
    ) -> None:
        """Показывает сведения о выбранном файле и разблокирует кнопку загрузки."""
        self._path_val.set(f"Путь: {path}")
        self._size_val.set(f"Размер: {self._format_size(size_bytes)}")
        if dimensions:
            self._dims_val.set(f"Размеры: {dimensions[0]}×{dimensions[1]} px")
        else:
            self._dims_val.set("Размеры: —")
        self._mime_val.set(f"Тип по сигнатуре: {mime or 'не распознан'}")
        self._upload_btn.configure(state="normal")

    def get_config(self) -> UploadConfig:
        """Собирает `UploadConfig` из полей; некорректные значения заменяются умолчаниями.

        Raises:
            ValueError: если границы противоречат друг другу (например, min > max).
        """
        defaults = UploadConfig()
        types = [t.strip() for t in self._types_val.get().split(",") if t.strip()]
        try:
            permission = int(self._permission_val.get().strip(), 8)
        except ValueError:
            permission = defaults.permission
        return (
            defaults.with_mime_types(types or defaults.allowed_mime_types)
            .with_size(
                _parse_int(self._min_size_val.get(), defaults.min_size),
                _parse_int(self._max_size_val.get(), defaults.max_size),
            )
            .with_dimension(
                _parse_int(self._max_width_val.get(), defaults.max_width),
                _parse_int(self._max_height_val.get(), defaults.max_height),
            )
            .with_storage(self._storage_val.get().strip() or defaults.storage_dir, permission)
        )

    def get_name(self) -> Optional[str]:
        return self._name_val.get().strip() or None

    # ---- Internals ----
    def _add_field(self, row: int, text: str, var: ctk.StringVar, columnspan: int = 1, column: int = 0) -> None:
        label = ctk.CTkLabel(self, text=text, anchor="w")
        label.grid(row=row, column=column, columnspan=columnspan, padx=8, pady=(0, 2), sticky="w")
        entry = ctk.CTkEntry(self, textvariable=var)
        entry.grid(row=row + 1, column=column, columnspan=columnspan, padx=8, pady=(0, 6), sticky="ew")

    def _add_pair(self, row: int, left: Tuple[str, ctk.StringVar], right: Tuple[str, ctk.StringVar]) -> None:
        self._add_field(row, left[0], left[1], column=0)
        self._add_field(row, right[0], right[1], column=1)

    def _emit_open_file(self) -> None:
        if self.on_open_file:
            self.on_open_file()

    def _emit_upload(self) -> None:
        if self.on_upload:
            self.on_upload()

    def _format_size(self, size_bytes: Optional[int]) -> str:
        if size_bytes is None:
            return "—"
        thresholds = [("Б", 1024), ("КБ", 1024**2), ("МБ", 1024**3), ("ГБ", 1024**4)]
        for label, limit in thresholds:
            if size_bytes < limit:
                if label == "Б":
                    return f"{size_bytes} {label}"
                value = size_bytes / (limit // 1024)
                return f"{value:.1f} {label}"
        value = size_bytes / (1024**4)
        return f"{value:.1f} ГБ"
