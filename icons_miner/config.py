"""Настройки прогона и их хранение в JSON.

Принципы:
- SRP: `MinerSettings` - только значения и их проверка; `SettingsStore` - только файл.
- Чистый код: настройки неизменяемы, изменение - через `dataclasses.replace`.
"""
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from icons_miner.models.raster_model import Color, ColorSpace

DEFAULT_SETTINGS_FILE = Path.home() / ".icons_miner" / "settings.json"


@dataclass(frozen=True)
class MinerSettings:
    """Параметры извлечения, классификации и каталога.

    Fields:
        color_space: Активное цветовое пространство хоста.
        prefix: Префикс идентификаторов ассетов.
        extensions: Допустимые расширения ассетов.
        min_alpha: Порог альфы для подсчёта средней яркости.
        sample_stride: Шаг выборки пикселей.
        dark_background / light_background: Фоны для светлых и тёмных иконок.
        max_display_size: Длинная сторона превью основного варианта в каталоге, px.
        max_preview_size: Ограничение превью в файле описания, px.
        export_all_variants: Записывать все варианты, а не только основной и второй.
        max_workers: Число потоков; 1 - последовательная обработка.
    """
    color_space: ColorSpace = ColorSpace.LINEAR
    prefix: str = ""
    extensions: Tuple[str, ...] = (".png", ".asset")
    min_alpha: float = 0.1
    sample_stride: int = 1
    dark_background: str = "#0d1117"
    light_background: str = "#ffffff"
    max_display_size: int = 64
    max_preview_size: int = 512
    export_all_variants: bool = False
    max_workers: int = 1
    catalog_title: str = "Editor Built-in Icons"
    host_version: str = ""
    usage_snippet: str = 'EditorGUIUtility.IconContent("{name}")'
    snippet_language: str = "CSharp"
    images_dir: str = "img"
    descriptions_dir: str = "meta"
    readme_name: str = "README.md"
    source_dir: str = ""
    output_dir: str = ""

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_alpha <= 1.0:
            raise ValueError(f"min_alpha должен быть в [0, 1]: {self.min_alpha}")
        if self.sample_stride < 1:
            raise ValueError(f"sample_stride должен быть >= 1: {self.sample_stride}")
        if self.max_display_size < 1 or self.max_preview_size < 1:
            raise ValueError("Размеры превью должны быть >= 1")
        if self.max_workers < 1:
            raise ValueError(f"max_workers должен быть >= 1: {self.max_workers}")
        # fail early on malformed colors
        self.dark_color
        self.light_color

    @property
    def dark_color(self) -> Color:
        return Color.from_hex(self.dark_background)

    @property
    def light_color(self) -> Color:
        return Color.from_hex(self.light_background)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MinerSettings":
        """Создаёт настройки из словаря; неизвестные ключи игнорируются."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        if "color_space" in values:
            try:
                values["color_space"] = ColorSpace(str(values["color_space"]).lower())
            except ValueError as exc:
                raise ValueError(f"Неизвестное цветовое пространство: {values['color_space']!r}") from exc
        if "extensions" in values:
            values["extensions"] = tuple(values["extensions"])
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["color_space"] = self.color_space.value
        data["extensions"] = list(self.extensions)
        return data


class SettingsStore:
    def __init__(self, filepath: str | Path = DEFAULT_SETTINGS_FILE) -> None:
        self.filepath = Path(filepath)
        self.settings = MinerSettings()

    def init(self) -> None:
        try:
            os.makedirs(self.filepath.parent, exist_ok=True)
            if not self.filepath.exists():
                self.reset()
        except OSError as exc:
            raise OSError(f"SettingsStore.init() could not create settings file: {exc}") from exc

    def _parse(self) -> MinerSettings:
        with open(self.filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("settings root is not an object")
        return MinerSettings.from_dict(data)

    def read(self) -> MinerSettings:
        """Читает настройки, ничего не записывая; при ошибке - умолчания."""
        try:
            self.settings = self._parse()
        except (FileNotFoundError, json.JSONDecodeError, ValueError, TypeError):
            self.settings = MinerSettings()
        return self.settings

    def load(self) -> MinerSettings:
        """Читает настройки; отсутствующий или повреждённый файл сбрасывается к умолчаниям."""
        try:
            self.settings = self._parse()
        except (FileNotFoundError, json.JSONDecodeError, ValueError, TypeError):
            self.reset()
            return self.settings

        self.save(self.settings)
        return self.settings

    def reset(self) -> None:
        self.settings = MinerSettings()
        self.save(self.settings)

    def save(self, settings: Optional[MinerSettings] = None) -> None:
        if settings is not None:
            self.settings = settings
        os.makedirs(self.filepath.parent, exist_ok=True)
        with open(self.filepath, "w", encoding="utf-8") as f:
            json.dump(self.settings.to_dict(), f, indent=4)
