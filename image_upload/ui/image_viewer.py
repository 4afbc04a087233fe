"""Виджет предпросмотра выбранного изображения: вписывание в область и масштаб колесом.

Принципы:
- SRP: отвечает только за представление изображения.
- Чистый код: чёткое разделение публичного API и внутренних обработчиков событий.
"""
from __future__ import annotations

from typing import Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk


class ImageViewer(ctk.CTkFrame):
    """Канва с изображением по центру; масштаб ограничен 10–400%."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._image: Optional[Image.Image] = None
        self._tk_image: Optional[ImageTk.PhotoImage] = None
        self._scale_factor: float = 1.0

        self._canvas.bind("<Configure>", self._on_canvas_resize)
        self._canvas.bind("<MouseWheel>", self._on_mouse_wheel)      # Windows/macOS
        self._canvas.bind("<Button-4>", self._on_mouse_wheel_linux)  # Linux scroll up
        self._canvas.bind("<Button-5>", self._on_mouse_wheel_linux)  # Linux scroll down

    # ---- Public API ----
    def set_image(self, image: Image.Image) -> None:
        """Устанавливает изображение и вписывает его в доступную область."""
        self._image = image
        self._scale_factor = self._fit_scale()
        self._render_image()

    def clear(self) -> None:
        self._image = None
        self._tk_image = None
        self._canvas.delete("all")

    # ---- Internals ----
    def _on_canvas_resize(self, _event: tk.Event) -> None:
        if self._image is None:
            return
        self._scale_factor = self._fit_scale()
        self._render_image()

    def _render_image(self) -> None:
        self._canvas.delete("all")
        if self._image is None:
            return

        canvas_w, canvas_h = self._canvas_size()
        img_w, img_h = self._image.size
        scaled_w = max(1, int(img_w * self._scale_factor))
        scaled_h = max(1, int(img_h * self._scale_factor))

        resized = self._image.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)
        self._tk_image = ImageTk.PhotoImage(resized)
        x = (canvas_w - scaled_w) // 2
        y = (canvas_h - scaled_h) // 2
        self._canvas.create_image(x, y, image=self._tk_image, anchor="nw")

    def _fit_scale(self) -> float:
        if self._image is None:
            return 1.0
        canvas_w, canvas_h = self._canvas_size()
        img_w, img_h = self._image.size
        if img_w == 0 or img_h == 0:
            return 1.0
        return max(0.1, min(4.0, min(canvas_w / img_w, canvas_h / img_h)))

    def _canvas_size(self) -> Tuple[int, int]:
        return max(1, int(self._canvas.winfo_width())), max(1, int(self._canvas.winfo_height()))

    def _get_canvas_bg(self) -> str:
        # CTk does not expose canvas theme, so pick neutral
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"

    # ---- Mouse wheel zoom ----
    def _on_mouse_wheel(self, event: tk.Event) -> None:
        if self._image is None or event.delta == 0:
            return
        self._zoom(1.1 if event.delta > 0 else 1.0 / 1.1)

    def _on_mouse_wheel_linux(self, event: tk.Event) -> None:
        # On X11, Button-4 is up, Button-5 is down
        if self._image is None:
            return
        self._zoom(1.1 if getattr(event, "num", None) == 4 else 1.0 / 1.1)

    def _zoom(self, factor: float) -> None:
        new_scale = max(0.1, min(4.0, self._scale_factor * factor))
        if abs(new_scale - self._scale_factor) < 1e-6:
            return
        self._scale_factor = new_scale
        self._render_image()
