from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np
import pytest

from icons_miner.models.raster_model import PixelFormat, RasterImage


class FakeTexture:
    def __init__(self, name: str, pixels: np.ndarray, is_compressed: bool = False, is_readable: bool = True,
                 premultiplied: bool = False) -> None:
        self.name = name
        self.pixels = pixels
        self.height, self.width = pixels.shape[:2]
        self.is_compressed = is_compressed
        self.is_readable = is_readable
        self.premultiplied = premultiplied
        self.reads = 0

    def read_pixels(self) -> np.ndarray:
        self.reads += 1
        return self.pixels


class FakeBackend:
    """Records every scratch target so tests can check acquire/release pairing."""
    def __init__(self, fail_on_blit: bool = False) -> None:
        self.fail_on_blit = fail_on_blit
        self.acquired: List[dict] = []
        self.released: List[dict] = []

    def acquire_target(self, width: int, height: int, linear: bool) -> dict:
        target = {"width": width, "height": height, "linear": linear, "buffer": None}
        self.acquired.append(target)
        return target

    def blit(self, source: FakeTexture, target: dict) -> None:
        if self.fail_on_blit:
            raise RuntimeError("device lost")
        target["buffer"] = source.pixels.copy()

    def read_pixels(self, target: dict) -> np.ndarray:
        return target["buffer"].copy()

    def release_target(self, target: dict) -> None:
        self.released.append(target)


class FakeSource:
    def __init__(self, textures: Dict[str, Optional[FakeTexture]]) -> None:
        self.textures = textures
        self.loaded: List[str] = []

    def enumerate(self) -> List[str]:
        return list(self.textures)

    def load(self, name: str) -> Optional[FakeTexture]:
        self.loaded.append(name)
        return self.textures[name]


def solid(width: int, height: int, rgba) -> np.ndarray:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[...] = rgba
    return pixels


def raster_of(pixels: np.ndarray, premultiplied: bool = False) -> RasterImage:
    height, width = pixels.shape[:2]
    return RasterImage(
        width=width,
        height=height,
        pixel_format=PixelFormat.UNCOMPRESSED,
        readable=True,
        pixels=pixels,
        premultiplied=premultiplied,
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def random_pixels(rng: np.random.Generator) -> np.ndarray:
    return rng.integers(0, 256, size=(8, 8, 4), dtype=np.uint8)
