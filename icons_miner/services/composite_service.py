"""Гамма-корректное наложение иконки на сплошной фон.

Принципы:
- SRP: одна операция - непрозрачное сведение поверх одного цвета.
- Рабочее пространство выбирается так же, как в `LuminanceService`, чтобы
  фон, подобранный по контрасту, считался согласованно.
"""
from __future__ import annotations

import io

import numpy as np
from PIL import Image

from icons_miner.models.raster_model import Color, ColorSpace, CompositeResult, RasterImage
from icons_miner.services.color_space import gamma_to_linear, linear_to_gamma, straight_alpha, to_working_space


class CompositeService:
    def __init__(self, color_space: ColorSpace = ColorSpace.LINEAR) -> None:
        self.color_space = color_space

    def composite(self, raster: RasterImage, background: Color) -> CompositeResult:
        """Porter-Duff "over" поверх фона: `out = src * a + bg * (1 - a)`.

        Args:
            raster: Материализованный RGBA-растр иконки.
            background: Цвет фона (с пометкой пространства).

        Returns:
            `CompositeResult` того же размера, RGB без альфы.

        Raises:
            ValueError: если у растра нет буфера пикселей.
        """
        if raster.pixels is None:
            raise ValueError("Растр не материализован")
        use_linear = self.color_space is ColorSpace.LINEAR

        bg = to_working_space(background, use_linear)
        px = straight_alpha(raster.pixels, raster.premultiplied)
        alpha = px[..., 3:4]
        src = px[..., :3]
        if use_linear:
            src = gamma_to_linear(src)

        out = src * alpha + bg * (1.0 - alpha)
        if use_linear:
            out = linear_to_gamma(out)

        # np.rint rounds half to even
        rgb = np.clip(np.rint(out * 255.0), 0, 255).astype(np.uint8)
        image = Image.fromarray(np.ascontiguousarray(rgb))
        return CompositeResult(width=raster.width, height=raster.height, image=image)

    def encode_png(self, result: CompositeResult) -> bytes:
        """Кодирует результат в PNG (без потерь)."""
        buffer = io.BytesIO()
        result.image.save(buffer, format="PNG")
        return buffer.getvalue()
