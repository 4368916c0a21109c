from __future__ import annotations

import io
import tkinter as tk
from tkinter import ttk
from typing import Optional, Tuple

from PIL import Image, ImageOps, ImageTk


def decode_preview(data: bytes) -> Image.Image:
    """Decode image bytes for display, honouring EXIF orientation."""
    img = Image.open(io.BytesIO(data))
    img = ImageOps.exif_transpose(img)
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGB")
    return img


def fit_size(img_w: int, img_h: int, box_w: int, box_h: int) -> Tuple[int, int]:
    if img_w <= 0 or img_h <= 0 or box_w <= 2 or box_h <= 2:
        return (1, 1)
    scale = min(box_w / img_w, box_h / img_h, 1.0)
    return max(1, int(img_w * scale)), max(1, int(img_h * scale))


class ImageCanvas(ttk.Frame):
    """Preview pane: shows a PIL image shrunk to fit, or a placeholder message."""

    def __init__(self, master, *, placeholder: str = "No image loaded", bg: str = "#f3f3f3"):
        super().__init__(master)
        self._canvas = tk.Canvas(self, highlightthickness=0, bg=bg)
        self._canvas.pack(fill="both", expand=True)

        self._photo: Optional[ImageTk.PhotoImage] = None
        self._pil: Optional[Image.Image] = None

        self._canvas.bind("<Configure>", lambda _evt: self._redraw())

        self._placeholder_id = self._canvas.create_text(
            10, 10, anchor="nw",
            text=placeholder,
            fill="#555",
            font=("TkDefaultFont", 11),
        )

    def set_image(self, pil: Optional[Image.Image]) -> None:
        self._pil = pil
        self._redraw()

    def set_bytes(self, data: bytes) -> Image.Image:
        pil = decode_preview(data)
        self.set_image(pil)
        return pil

    def set_placeholder(self, text: str) -> None:
        self._canvas.itemconfigure(self._placeholder_id, text=text)

    def clear(self, placeholder: Optional[str] = None) -> None:
        if placeholder is not None:
            self.set_placeholder(placeholder)
        self.set_image(None)

    def _redraw(self) -> None:
        self._canvas.delete("img")
        if self._pil is None:
            self._canvas.itemconfigure(self._placeholder_id, state="normal")
            return

        self._canvas.itemconfigure(self._placeholder_id, state="hidden")

        w = max(1, self._canvas.winfo_width())
        h = max(1, self._canvas.winfo_height())
        new_w, new_h = fit_size(self._pil.width, self._pil.height, w, h)
        resized = self._pil.resize((new_w, new_h), Image.LANCZOS)

        self._photo = ImageTk.PhotoImage(resized)
        self._canvas.create_image((w - new_w) // 2, (h - new_h) // 2, anchor="nw", image=self._photo, tags=("img",))
