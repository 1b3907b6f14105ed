"""Модели растров и цветов.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: цвет и результат композитинга неизменяемы (`frozen=True`),
  растр владеет буфером и явно освобождает его.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from PIL import Image


class ColorSpace(str, Enum):
    """Активное цветовое пространство рендера хоста."""
    LINEAR = "linear"
    GAMMA = "gamma"


class PixelFormat(str, Enum):
    COMPRESSED = "compressed"
    UNCOMPRESSED = "uncompressed"


@dataclass(frozen=True)
class Color:
    """Цвет из трёх нормализованных каналов 0..1.

    Fields:
        r, g, b: Каналы.
        linear: True, если значения в линейном пространстве, иначе гамма-кодированы.
    """
    r: float
    g: float
    b: float
    linear: bool = False

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Разбирает строку вида `#0d1117` (гамма-кодированный цвет)."""
        hex_value = value.strip().lstrip("#")
        if len(hex_value) == 3:
            hex_value = "".join(ch * 2 for ch in hex_value)
        if len(hex_value) != 6:
            raise ValueError(f"Некорректный HEX-цвет: {value!r}")
        try:
            r, g, b = (int(hex_value[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError as exc:
            raise ValueError(f"Некорректный HEX-цвет: {value!r}") from exc
        return cls(r / 255.0, g / 255.0, b / 255.0, linear=False)

    def as_tuple(self) -> Tuple[float, float, float]:
        return self.r, self.g, self.b


@dataclass
class RasterImage:
    """Пиксели одной иконки на время её обработки.

    Fields:
        width, height: Размеры, px.
        pixel_format: Сжат ли исходный формат.
        readable: Доступен ли буфер напрямую с CPU.
        pixels: Массив `(height, width, 4)` uint8 RGBA, построчно; None после `release()`.
        premultiplied: Цвет уже умножен на альфу.
        owns_buffer: Буфер создан только ради чтения (копия после отрисовки в цель).
    """
    width: int
    height: int
    pixel_format: PixelFormat
    readable: bool
    pixels: Optional[np.ndarray] = None
    premultiplied: bool = False
    owns_buffer: bool = False

    @property
    def materialized(self) -> bool:
        return self.pixels is not None

    def release(self) -> None:
        """Освобождает буфер пикселей; повторный вызов безопасен."""
        self.pixels = None

    def __enter__(self) -> "RasterImage":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.release()


@dataclass(frozen=True)
class CompositeResult:
    """Непрозрачный RGB-растр, готовый к записи в PNG без потерь."""
    width: int
    height: int
    image: Image.Image
