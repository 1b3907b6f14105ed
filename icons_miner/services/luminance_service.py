from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from icons_miner.models.raster_model import Color, ColorSpace, RasterImage
from icons_miner.services.color_space import gamma_to_linear, relative_luminance, straight_alpha

MIN_COVERAGE = 1e-5
LIGHT_THRESHOLD = 0.5


class LuminanceService:
    def __init__(self, color_space: ColorSpace = ColorSpace.LINEAR) -> None:
        self.color_space = color_space

    def is_predominantly_light(self, raster: RasterImage, min_alpha: float = 0.1, stride: int = 1) -> bool:
        """
        Светлая ли иконка в среднем (по покрытию альфой).
        Полностью прозрачная иконка считается тёмной.
        """
        average, coverage = self.average_color(raster, min_alpha=min_alpha, stride=stride)
        if coverage < MIN_COVERAGE:
            return False
        return relative_luminance(average) >= LIGHT_THRESHOLD

    def average_color(self, raster: RasterImage, min_alpha: float = 0.1, stride: int = 1) -> Tuple[Color, float]:
        """
        Средний цвет, взвешенный по альфе, и доля покрытия.
        Берётся каждый `stride`-й пиксель по обеим осям, пиксели с альфой ниже
        `min_alpha` пропускаются. Гамма-значения линеаризуются только в
        линейном пространстве, иначе используются как есть (приближение).
        Возвращает (цвет в линейном пространстве, покрытие 0..1).
        """
        if raster.pixels is None:
            raise ValueError("Растр не материализован")
        step = max(1, int(stride))
        min_a = float(np.clip(min_alpha, 0.0, 1.0))

        px = straight_alpha(raster.pixels[::step, ::step], raster.premultiplied)
        alpha = px[..., 3]
        keep = alpha >= min_a
        rgb = px[..., :3][keep]
        weights = alpha[keep]
        if self.color_space is ColorSpace.LINEAR:
            rgb = gamma_to_linear(rgb)

        sampled = math.ceil(raster.width / step) * math.ceil(raster.height / step)
        total_weight = float(weights.sum())
        coverage = total_weight / sampled if sampled else 0.0
        if total_weight <= 0.0:
            return Color(0.0, 0.0, 0.0, linear=True), coverage

        sums = (rgb * weights[:, None]).sum(axis=0)
        r, g, b = (float(v) for v in sums / total_weight)
        return Color(r, g, b, linear=True), coverage
