from __future__ import annotations

import customtkinter as ctk

from image_upload.models.upload_model import UploadResult

_ERROR_COLOR = "#d9534f"
_OK_COLOR = "#3c9d5d"


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=64, **kwargs)

        # layout
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)

        self._status_label = ctk.CTkLabel(self, text="Статус", font=ctk.CTkFont(weight="bold"))
        self._status_label.grid(row=0, column=0, padx=(10, 6), pady=8, sticky="w")

        self._status_value = ctk.StringVar(value="Выберите изображение")
        self._status_text = ctk.CTkLabel(self, textvariable=self._status_value, anchor="w", justify="left", wraplength=760)
        self._status_text.grid(row=0, column=1, padx=6, pady=8, sticky="ew")

    # public API (sync from controller)
    def set_message(self, text: str) -> None:
        self._status_value.set(text)
        self._status_text.configure(text_color=("gray10", "gray90"))

    def show_result(self, result: UploadResult) -> None:
        if result and result.image is not None:
            self._status_value.set(f"Сохранено: {result.image.to_json()}")
            self._status_text.configure(text_color=_OK_COLOR)
        else:
            self._status_value.set(f"Ошибка: {result.error}")
            self._status_text.configure(text_color=_ERROR_COLOR)
