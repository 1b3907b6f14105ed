"""Запись каталога: PNG иконок, файлы описаний и таблица README.

Принципы:
- SRP: только раскладка файлов и текст каталога, без обработки пикселей.
- Потокобезопасность: каждая иконка собирает описание в собственном буфере
  и пишет только свои файлы.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from PIL import Image

from icons_miner.config import MinerSettings
from icons_miner.models.icon_model import CatalogEntry, IconRecord, RenderedIcon

logger = logging.getLogger(__name__)


def _link(path: Path) -> str:
    """Путь для markdown: прямые слэши, пробелы как %20."""
    return path.as_posix().replace("\\", "/").replace(" ", "%20")


class CatalogService:
    def __init__(self, output_dir: str | Path, settings: Optional[MinerSettings] = None) -> None:
        self.output_dir = Path(output_dir)
        self.settings = settings or MinerSettings()
        self.images_dir = self.output_dir / self.settings.images_dir
        self.descriptions_dir = self.output_dir / self.settings.descriptions_dir

    def prepare(self) -> None:
        self.images_dir.mkdir(parents=True, exist_ok=True)
        self.descriptions_dir.mkdir(parents=True, exist_ok=True)

    def write_icon(self, rendered: RenderedIcon) -> IconRecord:
        """Сохраняет PNG и файл описания одной иконки.

        Returns:
            `IconRecord` с путями относительно каталога вывода.
        """
        stem = rendered.output_stem
        png_rel = Path(self.settings.images_dir) / f"{stem}.png"
        description_rel = Path(self.settings.descriptions_dir) / f"{stem}.md"

        rendered.composite.image.save(self.output_dir / png_rel, format="PNG")
        (self.output_dir / description_rel).write_text(
            self._describe(rendered, png_rel), encoding="utf-8"
        )
        logger.debug("Wrote %s (%dx%d)", png_rel, rendered.width, rendered.height)

        return IconRecord(
            name=rendered.name,
            width=rendered.width,
            height=rendered.height,
            is_light=rendered.is_light,
            png_path=png_rel,
            description_path=description_rel,
            display_size=rendered.display_size,
        )

    def _describe(self, rendered: RenderedIcon, png_rel: Path) -> str:
        name = rendered.name.display_name
        limit = self.settings.max_preview_size
        lines: List[str] = [
            f"# {name} `{rendered.width}x{rendered.height}`",
            f'<img src="/{_link(png_rel)}" width={min(rendered.width, limit)} height={min(rendered.height, limit)}>',
            "",
        ]
        if self.settings.usage_snippet:
            lines += [
                f"``` {self.settings.snippet_language}".rstrip(),
                self.settings.usage_snippet.format(name=name),
                "```",
            ]
        lines += ["```", name, "```"]
        return "\n".join(lines) + "\n"

    def write_catalog(self, entries: Iterable[CatalogEntry]) -> Path:
        """Пишет README с таблицей: строка на семейство, в порядке `entries`."""
        s = self.settings
        lines: List[str] = [f"# {s.catalog_title}"]
        if s.host_version:
            lines.append(f"Host version **{s.host_version}**")
        lines.append("")
        if s.usage_snippet:
            lines.append(f"Load icons using `{s.usage_snippet.format(name='<ICON NAME>')}`")
            lines.append("")
        lines.append("All icons are clickable, you will be forwarded to description file.")
        lines.append("| Icon | Name |")
        lines.append("|------|------|")
        for entry in entries:
            lines.append(self._row(entry))

        readme = self.output_dir / s.readme_name
        readme.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("Catalog written to %s", readme)
        return readme

    def _row(self, entry: CatalogEntry) -> str:
        primary = entry.primary
        width, height = primary.display_size or (primary.width, primary.height)
        cells = [self._image_link(primary, width, height)]
        names = [f"`{primary.name.display_name}`"]
        if entry.secondary is not None:
            cells.append(self._image_link(entry.secondary, f"{width / 2:g}", f"{height / 2:g}"))
            names.append(f"`{entry.secondary.name.display_name}`")
        return f"| {' '.join(cells)} | {' '.join(names)} |"

    def _image_link(self, record: IconRecord, width: object, height: object) -> str:
        title = record.name.display_name
        return (
            f'[<img src="{_link(record.png_path)}" width={width} height={height} title="{title}">]'
            f"({_link(record.description_path)})"
        )

    def load_preview(self, record: IconRecord) -> Image.Image:
        """Загружает записанный PNG для просмотра.

        Raises:
            FileNotFoundError: если файл не найден.
        """
        path = self.output_dir / record.png_path
        if not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")
        with Image.open(path) as img:
            return img.convert("RGB")
