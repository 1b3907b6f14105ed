"""Канва просмотра иконок: варианты одного семейства в ряд, общий масштаб, перетаскивание.

Принципы:
- SRP: только отрисовка плиток и жесты мыши; данные приходят из контроллера.
- Чистый код: геометрия раскладки (`_Tile`) отделена от обработчиков событий.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

MIN_SCALE = 0.25
MAX_SCALE = 16.0
GAP = 16
CAPTION_HEIGHT = 18
WHEEL_STEP = 1.1

CursorCallback = Callable[[Optional[int], Optional[int], Optional[Tuple[int, int, int]]], None]


@dataclass
class _Tile:
    image: Image.Image
    caption: str
    x: int = 0  # offset from the row origin at the current scale
    width: int = 1
    height: int = 1


class ImageViewer(ctk.CTkFrame):
    """Показывает основной вариант слева, остальные варианты справа в том же масштабе."""

    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        dark = ctk.get_appearance_mode().lower() == "dark"
        self._caption_color = "#c9d1d9" if dark else "#24292f"
        self._canvas = tk.Canvas(self, highlightthickness=0, bg="#161b22" if dark else "#eaeef2")
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._tiles: List[_Tile] = []
        self._photos: List[ImageTk.PhotoImage] = []
        self._scale = 1.0
        self._origin: Optional[Tuple[int, int]] = None
        self._drag_from: Optional[Tuple[int, int, int, int]] = None

        self.on_cursor_move: Optional[CursorCallback] = None
        self.on_zoom_change: Optional[Callable[[int], None]] = None

        bindings = {
            "<Configure>": self._on_resize,
            "<Motion>": self._on_motion,
            "<Leave>": lambda _e: self._report_cursor(None),
            "<MouseWheel>": self._on_wheel,
            "<Button-4>": self._on_wheel,
            "<Button-5>": self._on_wheel,
            "<ButtonPress-1>": self._on_drag_start,
            "<B1-Motion>": self._on_drag,
            "<ButtonRelease-1>": self._on_drag_end,
        }
        for sequence, handler in bindings.items():
            self._canvas.bind(sequence, handler)

    # ---- Public API ----
    def set_variants(self, variants: Sequence[Tuple[Image.Image, str]]) -> None:
        """Варианты семейства как пары (изображение, подпись); первый считается основным."""
        self._tiles = [_Tile(image=image, caption=caption) for image, caption in variants]
        self._origin = None
        self._scale = self._fit_scale()
        self._redraw()

    def clear(self) -> None:
        self.set_variants([])

    def set_zoom_to_fit(self) -> None:
        self._scale = self._fit_scale()
        self._origin = None
        self._redraw()

    def set_zoom_percent(self, zoom_percent: int) -> None:
        """Устанавливает масштаб в процентах (25-1600%)."""
        self._scale = _clamp_scale(zoom_percent / 100.0)
        self._redraw()

    def get_zoom_percent(self) -> int:
        return int(round(self._scale * 100))

    # ---- Layout ----
    def _fit_scale(self) -> float:
        if not self._tiles:
            return 1.0
        avail_w = max(1, self._canvas.winfo_width() - GAP * (len(self._tiles) - 1))
        avail_h = max(1, self._canvas.winfo_height() - CAPTION_HEIGHT)
        total_w = sum(tile.image.width for tile in self._tiles)
        max_h = max(tile.image.height for tile in self._tiles)
        if total_w == 0 or max_h == 0:
            return 1.0
        return _clamp_scale(min(avail_w / total_w, avail_h / max_h))

    def _layout(self) -> Tuple[int, int]:
        """Раскладывает плитки в ряд; возвращает (ширина, высота) ряда в экранных px."""
        x = 0
        row_h = 0
        for tile in self._tiles:
            tile.x = x
            tile.width = max(1, int(tile.image.width * self._scale))
            tile.height = max(1, int(tile.image.height * self._scale))
            x += tile.width + GAP
            row_h = max(row_h, tile.height)
        return max(0, x - GAP), row_h + CAPTION_HEIGHT

    def _clamp_origin(self, row_w: int, row_h: int) -> Tuple[int, int]:
        canvas_w = self._canvas.winfo_width()
        canvas_h = self._canvas.winfo_height()
        bounds = []
        for row, canvas in ((row_w, canvas_w), (row_h, canvas_h)):
            # centered when the row fits, otherwise scrollable within the canvas
            bounds.append(((canvas - row) // 2,) * 2 if row <= canvas else (canvas - row, 0))
        (lo_x, hi_x), (lo_y, hi_y) = bounds
        if self._origin is None:
            return (lo_x if lo_x == hi_x else 0), (lo_y if lo_y == hi_y else 0)
        ox, oy = self._origin
        return max(lo_x, min(hi_x, ox)), max(lo_y, min(hi_y, oy))

    def _redraw(self) -> None:
        self._canvas.delete("all")
        self._photos = []
        if not self._tiles:
            return
        self._origin = self._clamp_origin(*self._layout())
        ox, oy = self._origin
        # magnified icons keep hard pixel edges
        resample = Image.Resampling.NEAREST if self._scale >= 1.0 else Image.Resampling.LANCZOS
        for tile in self._tiles:
            photo = ImageTk.PhotoImage(tile.image.resize((tile.width, tile.height), resample))
            self._photos.append(photo)
            self._canvas.create_image(ox + tile.x, oy, image=photo, anchor="nw")
            if tile.caption:
                self._canvas.create_text(
                    ox + tile.x, oy + tile.height + 2, text=tile.caption, anchor="nw", fill=self._caption_color
                )

    def _tile_at(self, cx: int, cy: int) -> Optional[Tuple[_Tile, int, int]]:
        if self._origin is None:
            return None
        ox, oy = self._origin
        for tile in self._tiles:
            dx = cx - ox - tile.x
            dy = cy - oy
            if 0 <= dx < tile.width and 0 <= dy < tile.height:
                x = min(tile.image.width - 1, int(dx / self._scale))
                y = min(tile.image.height - 1, int(dy / self._scale))
                return tile, x, y
        return None

    # ---- Events ----
    def _on_resize(self, _event: tk.Event) -> None:
        if self._tiles:
            self._redraw()

    def _on_motion(self, event: tk.Event) -> None:
        self._report_cursor(self._tile_at(event.x, event.y))

    def _report_cursor(self, hit: Optional[Tuple[_Tile, int, int]]) -> None:
        if self.on_cursor_move is None:
            return
        if hit is None:
            self.on_cursor_move(None, None, None)
            return
        tile, x, y = hit
        self.on_cursor_move(x, y, tile.image.getpixel((x, y)))

    def _on_wheel(self, event: tk.Event) -> None:
        if not self._tiles or self._origin is None:
            return
        num = getattr(event, "num", None)
        if num in (4, 5):
            zoom_in = num == 4
        elif event.delta:
            zoom_in = event.delta > 0
        else:
            return
        new_scale = _clamp_scale(self._scale * (WHEEL_STEP if zoom_in else 1.0 / WHEEL_STEP))
        if abs(new_scale - self._scale) < 1e-6:
            return
        # keep the point under the cursor fixed
        ox, oy = self._origin
        ratio = new_scale / self._scale
        self._origin = (int(round(event.x - (event.x - ox) * ratio)), int(round(event.y - (event.y - oy) * ratio)))
        self._scale = new_scale
        self._redraw()
        if self.on_zoom_change:
            self.on_zoom_change(self.get_zoom_percent())

    def _on_drag_start(self, event: tk.Event) -> None:
        if self._origin is None:
            return
        self._canvas.focus_set()
        self._drag_from = (event.x, event.y, *self._origin)

    def _on_drag(self, event: tk.Event) -> None:
        if self._drag_from is None:
            return
        sx, sy, ox, oy = self._drag_from
        self._origin = (ox + event.x - sx, oy + event.y - sy)
        self._redraw()

    def _on_drag_end(self, _event: tk.Event) -> None:
        self._drag_from = None


def _clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))
