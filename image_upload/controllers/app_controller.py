"""Контроллер приложения: оркестрация UI и сервисов.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без логики проверки загрузки).
- DIP: зависит от сервисов как от ролей; конкретные реализации инкапсулированы.
Clean Code:
- Обработчики компактны; сценарий загрузки вынесен в `InspectorService`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from tkinter import filedialog, TclError
from typing import Optional

import customtkinter as ctk

from image_upload.services.image_service import ImageService
from image_upload.services.inspector_service import InspectorService
from image_upload.ui.bottom_bar import BottomBar
from image_upload.ui.image_viewer import ImageViewer
from image_upload.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Бинд событий (UI -> контроллер).
    - Предпросмотр через `ImageService`, сведения о файле через `InspectorService.describe`.
    - Загрузка выбранного файла через `InspectorService` и показ результата.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk

    _image_service: ImageService = field(default_factory=ImageService)
    _inspector_service: InspectorService = field(default_factory=InspectorService)
    _current_path: Optional[Path] = None

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами."""
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_upload = self._handle_upload

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title="Выберите изображение",
                filetypes=(
                    ("Images", "*.png *.jpg *.jpeg *.gif *.bmp *.tiff *.webp"),
                    ("All files", "*.*"),
                ),
            )
        except TclError:
            # Silent fail if dialog cannot open
            return

        if not file_path:
            return

        path = Path(file_path)
        try:
            info = self._inspector_service.describe(path)
        except OSError as exc:
            self.bottom.set_message(f"Файл недоступен: {exc}")
            return
        self._current_path = path
        self.sidebar.set_file_info(info.path, info.size, info.mime, info.dimensions)
        try:
            self.viewer.set_image(self._image_service.load_preview(path))
        except (ValueError, OSError):
            # not an image: nothing to preview, upload will report why
            self.viewer.clear()
        self.bottom.set_message("Файл выбран. Нажмите «Загрузить»")

    def _handle_upload(self) -> None:
        if self._current_path is None:
            return
        try:
            config = self.sidebar.get_config()
        except ValueError as exc:
            self.bottom.set_message(f"Некорректные параметры: {exc}")
            return

        result = self._inspector_service.upload_file(
            self._current_path, config, name=self.sidebar.get_name()
        )
        self.bottom.show_result(result)
