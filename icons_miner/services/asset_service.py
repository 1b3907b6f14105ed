"""Источник ассетов на диске и программная замена GPU-цели на Pillow.

Принципы:
- SRP: `DirectoryAssetSource` только перечисляет и загружает файлы.
- OCP: другой хост (редактор, архив) подключается своей реализацией `AssetSource`.
- LSP/ISP: `PillowTexture` и `SoftwareRenderBackend` реализуют узкие протоколы
  из `extraction_service`.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from icons_miner.services.extraction_service import TextureHandle

logger = logging.getLogger(__name__)

# block-compressed containers Pillow can decode
COMPRESSED_FORMATS = frozenset({"DDS", "BLP", "FTEX"})


class AssetSource(Protocol):
    def enumerate(self) -> List[str]: ...

    def load(self, name: str) -> Optional[TextureHandle]: ...


class PillowTexture:
    """Текстура поверх `PIL.Image.Image`.

    Сжатой считается текстура из блочного контейнера (DDS, BLP, FTEX).
    Напрямую читаемой - только 8-битная RGBA; палитра, оттенки серого и т.п.
    идут через отрисовку во временную цель.
    """
    def __init__(self, name: str, image: Image.Image, source_format: Optional[str] = None, premultiplied: bool = False) -> None:
        self.name = name
        self.image = image
        self.source_format = source_format
        self.premultiplied = premultiplied

    @property
    def width(self) -> int:
        return self.image.size[0]

    @property
    def height(self) -> int:
        return self.image.size[1]

    @property
    def is_compressed(self) -> bool:
        return (self.source_format or "").upper() in COMPRESSED_FORMATS

    @property
    def is_readable(self) -> bool:
        return self.image.mode == "RGBA"

    def read_pixels(self) -> np.ndarray:
        if not self.is_readable:
            raise ValueError(f"Текстура {self.name} не читается напрямую (режим {self.image.mode})")
        return np.asarray(self.image, dtype=np.uint8)

    def decode(self) -> Image.Image:
        """Декодирует текстуру в RGBA (то, что делает отрисовка на GPU)."""
        return self.image if self.image.mode == "RGBA" else self.image.convert("RGBA")


class DirectoryAssetSource:
    def __init__(self, root: str | Path, prefix: str = "", extensions: Iterable[str] = (".png", ".asset")) -> None:
        self.root = Path(root)
        self.prefix = prefix.replace("\\", "/").lower()
        self.extensions: Tuple[str, ...] = tuple(ext.lower() for ext in extensions)

    def enumerate(self) -> List[str]:
        """Все идентификаторы под префиксом с подходящим расширением.

        Returns:
            Относительные пути в POSIX-виде, отсортированные.

        Raises:
            FileNotFoundError: если корневой каталог не существует.
        """
        if not self.root.is_dir():
            raise FileNotFoundError(f"Каталог с иконками не найден: {self.root}")

        names: List[str] = []
        for path in self.root.rglob("*"):
            if not path.is_file():
                continue
            name = path.relative_to(self.root).as_posix()
            lowered = name.lower()
            if lowered.startswith(self.prefix) and lowered.endswith(self.extensions):
                names.append(name)
        return sorted(names)

    def load(self, name: str) -> Optional[PillowTexture]:
        """Загружает ассет; None, если файла нет или он не является изображением."""
        path = self.root / name
        if not path.is_file():
            logger.warning("Asset not found: %s", path)
            return None
        try:
            with Image.open(path) as img:
                img.load()
                source_format = img.format
                image = img.copy()
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("Asset is not a readable image: %s (%s)", path, exc)
            return None
        return PillowTexture(name=Path(name).stem, image=image, source_format=source_format)


@dataclass
class RenderTarget:
    width: int
    height: int
    linear: bool
    buffer: Optional[np.ndarray] = None


class SoftwareRenderBackend:
    """CPU-замена временной GPU-цели: отрисовка = декодирование в RGBA.

    Считает активные цели, чтобы утечки были видны (`active_targets`).
    """
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active = 0

    @property
    def active_targets(self) -> int:
        with self._lock:
            return self._active

    def acquire_target(self, width: int, height: int, linear: bool) -> RenderTarget:
        target = RenderTarget(width, height, linear, np.zeros((height, width, 4), dtype=np.uint8))
        with self._lock:
            self._active += 1
        return target

    def blit(self, source: PillowTexture, target: RenderTarget) -> None:
        if target.buffer is None:
            raise ValueError("Цель уже освобождена")
        decoded = source.decode()
        if decoded.size != (target.width, target.height):
            decoded = decoded.resize((target.width, target.height), Image.Resampling.BILINEAR)
        target.buffer[...] = np.asarray(decoded, dtype=np.uint8)

    def read_pixels(self, target: RenderTarget) -> np.ndarray:
        if target.buffer is None:
            raise ValueError("Цель уже освобождена")
        return target.buffer.copy()

    def release_target(self, target: RenderTarget) -> None:
        if target.buffer is None:
            return
        target.buffer = None
        with self._lock:
            self._active -= 1
