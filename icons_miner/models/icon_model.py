"""Модели имён иконок, семейств вариантов и записей каталога.

Принципы:
- SRP: только структура данных и производные от имени свойства, без ввода-вывода.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from icons_miner.models.raster_model import CompositeResult

RETINA_MARKER = "@2x"


@dataclass(frozen=True)
class GroupKey:
    """Ключ семейства: основа имени без `@2x` и расширение, оба без учёта регистра."""
    base_stem: str
    extension: str


@dataclass(frozen=True)
class IconName:
    """Идентификатор ассета в том виде, в каком его вернул хост.

    Регистр сохраняется для вывода, но не учитывается при группировке.
    """
    raw: str

    @property
    def extension(self) -> str:
        dot = self.raw.rfind(".")
        return self.raw[dot + 1:] if dot >= 0 else ""

    @property
    def stem(self) -> str:
        dot = self.raw.rfind(".")
        return self.raw[:dot] if dot >= 0 else self.raw

    @property
    def is_retina(self) -> bool:
        return self.stem.lower().endswith(RETINA_MARKER)

    @property
    def group_key(self) -> GroupKey:
        stem = self.stem
        if stem.lower().endswith(RETINA_MARKER):
            stem = stem[:-len(RETINA_MARKER)]
        return GroupKey(base_stem=stem.lower(), extension=self.extension.lower())

    @property
    def display_name(self) -> str:
        """Имя без каталогов и расширения, как его показывает каталог."""
        return self.stem.replace("\\", "/").rsplit("/", 1)[-1]

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class IconFamily:
    """Все варианты одной логической иконки.

    Fields:
        key: Общий `GroupKey`.
        members: Варианты в порядке убывания (ординально по исходному имени).
        primary: Вариант, который показывается крупно.
        secondary: Второй по порядку вариант или None для одиночной иконки.
    """
    key: GroupKey
    members: Tuple[IconName, ...]
    primary: IconName
    secondary: Optional[IconName] = None


@dataclass(frozen=True)
class RenderedIcon:
    """Результат обработки одной иконки до записи на диск.

    `file_stem` - имя выходных файлов, уникальное в пределах прогона;
    None означает `name.display_name`.
    """
    name: IconName
    width: int
    height: int
    is_light: bool
    composite: CompositeResult
    display_size: Optional[Tuple[int, int]] = None
    file_stem: Optional[str] = None

    @property
    def output_stem(self) -> str:
        return self.file_stem or self.name.display_name


@dataclass(frozen=True)
class IconRecord:
    """Что остаётся от иконки после записи PNG и освобождения пикселей."""
    name: IconName
    width: int
    height: int
    is_light: bool
    png_path: Path
    description_path: Path
    display_size: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class CatalogEntry:
    """Строка каталога: основной вариант и, возможно, второй."""
    family: IconFamily
    primary: IconRecord
    secondary: Optional[IconRecord] = None


@dataclass
class MiningReport:
    """Итог прогона: записи каталога и пропущенные иконки."""
    entries: List[CatalogEntry] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    exported: int = 0
    readme_path: Optional[Path] = None
