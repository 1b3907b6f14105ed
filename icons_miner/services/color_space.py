"""Преобразования гамма <-> линейное пространство и относительная яркость.

Чистые функции без состояния, векторизованы через numpy и принимают как
массивы, так и обычные числа.
"""
from __future__ import annotations

from typing import Union

import numpy as np

from icons_miner.models.raster_model import Color

ArrayLike = Union[float, np.ndarray]

# WCAG
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)


def gamma_to_linear(values: ArrayLike) -> np.ndarray:
    """sRGB -> линейное пространство (кусочная кривая sRGB)."""
    v = np.asarray(values, dtype=np.float64)
    curve = ((np.maximum(v, 0.0) + 0.055) / 1.055) ** 2.4
    return np.where(v <= 0.04045, v / 12.92, curve)


def linear_to_gamma(values: ArrayLike) -> np.ndarray:
    """Линейное пространство -> sRGB."""
    v = np.asarray(values, dtype=np.float64)
    curve = 1.055 * np.maximum(v, 0.0) ** (1.0 / 2.4) - 0.055
    return np.where(v <= 0.0031308, v * 12.92, curve)


def relative_luminance(rgb: Union[Color, np.ndarray]) -> float | np.ndarray:
    """Относительная яркость по линейным RGB (последняя ось массива или `Color`)."""
    if isinstance(rgb, Color):
        if not rgb.linear:
            raise ValueError("Яркость считается только по линейному цвету")
        return float(np.dot(LUMA_WEIGHTS, rgb.as_tuple()))
    arr = np.asarray(rgb, dtype=np.float64)
    return arr @ LUMA_WEIGHTS


def to_working_space(color: Color, linear: bool) -> np.ndarray:
    """Переводит цвет в рабочее пространство композитинга (вектор из 3 каналов)."""
    rgb = np.array(color.as_tuple(), dtype=np.float64)
    if linear and not color.linear:
        return gamma_to_linear(rgb)
    if not linear and color.linear:
        return linear_to_gamma(rgb)
    return rgb


def straight_alpha(pixels: np.ndarray, premultiplied: bool = False) -> np.ndarray:
    """Нормализует 8-битный RGBA в float [0, 1] с неумноженной альфой.

    Для premultiplied-буфера цвет делится на альфу; у полностью прозрачных
    пикселей цвет остаётся нулевым.
    """
    px = np.asarray(pixels, dtype=np.float64) / 255.0
    if not premultiplied:
        return px
    alpha = px[..., 3:4]
    with np.errstate(divide="ignore", invalid="ignore"):
        rgb = np.where(alpha > 0, px[..., :3] / alpha, 0.0)
    out = px.copy()
    out[..., :3] = np.clip(rgb, 0.0, 1.0)
    return out
