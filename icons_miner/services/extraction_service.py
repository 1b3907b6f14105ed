"""Получение читаемого несжатого буфера пикселей для любой текстуры.

Принципы:
- SRP: только материализация пикселей; классификация и композитинг - в других сервисах.
- DIP: текстура и GPU-цель описаны протоколами, конкретный хост подставляется снаружи.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Protocol

import numpy as np

from icons_miner.models.raster_model import ColorSpace, PixelFormat, RasterImage

logger = logging.getLogger(__name__)


class TextureHandle(Protocol):
    name: str
    width: int
    height: int
    is_compressed: bool
    is_readable: bool
    premultiplied: bool

    def read_pixels(self) -> np.ndarray:
        """Прямой доступ к RGBA-буферу `(height, width, 4)` uint8."""
        ...


class RenderBackend(Protocol):
    def acquire_target(self, width: int, height: int, linear: bool) -> Any: ...

    def blit(self, source: TextureHandle, target: Any) -> None: ...

    def read_pixels(self, target: Any) -> np.ndarray: ...

    def release_target(self, target: Any) -> None: ...


class ExtractionService:
    def __init__(self, backend: RenderBackend, color_space: ColorSpace = ColorSpace.LINEAR) -> None:
        self.backend = backend
        self.color_space = color_space

    def extract(self, texture: Optional[TextureHandle]) -> RasterImage:
        """Возвращает растр с доступным буфером пикселей.

        Быстрый путь: несжатая и читаемая текстура отдаёт свой буфер без копии
        и без преобразования цвета. Иначе текстура отрисовывается во временную
        цель того же размера и читается обратно; такой растр владеет копией и
        должен быть освобождён вызывающим (`with service.extract(t) as raster:`).

        Raises:
            ValueError: если текстура отсутствует (вызывающий пропускает иконку).
        """
        if texture is None:
            raise ValueError("Текстура недоступна")

        if not texture.is_compressed and texture.is_readable:
            return RasterImage(
                width=texture.width,
                height=texture.height,
                pixel_format=PixelFormat.UNCOMPRESSED,
                readable=True,
                pixels=texture.read_pixels(),
                premultiplied=texture.premultiplied,
                owns_buffer=False,
            )

        logger.debug(
            "Fallback readback for %s (compressed=%s, readable=%s)",
            texture.name, texture.is_compressed, texture.is_readable,
        )
        with self._scratch_target(texture.width, texture.height) as target:
            self.backend.blit(texture, target)
            pixels = self.backend.read_pixels(target)

        return RasterImage(
            width=texture.width,
            height=texture.height,
            pixel_format=PixelFormat.UNCOMPRESSED,
            readable=True,
            pixels=pixels,
            premultiplied=texture.premultiplied,
            owns_buffer=True,
        )

    @contextmanager
    def _scratch_target(self, width: int, height: int) -> Iterator[Any]:
        # read/write convention follows the active color space
        target = self.backend.acquire_target(width, height, self.color_space is ColorSpace.LINEAR)
        try:
            yield target
        finally:
            self.backend.release_target(target)
