"""Конвейер извлечения: имена -> семейства -> пиксели -> фон -> композит -> каталог.

Принципы:
- SRP: оркестрация сервисов и изоляция ошибок отдельных иконок.
- DIP: источник ассетов, приёмник каталога и GPU-цель внедряются снаружи.
- Ошибка одной иконки не прерывает прогон; фатален только сбой перечисления.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from icons_miner.config import MinerSettings
from icons_miner.models.icon_model import (
    CatalogEntry,
    IconFamily,
    IconName,
    IconRecord,
    MiningReport,
    RenderedIcon,
)
from icons_miner.services.asset_service import AssetSource, SoftwareRenderBackend
from icons_miner.services.composite_service import CompositeService
from icons_miner.services.extraction_service import ExtractionService, RenderBackend
from icons_miner.services.luminance_service import LuminanceService
from icons_miner.services.variant_grouper import VariantGrouper

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class IconSink(Protocol):
    def prepare(self) -> None: ...

    def write_icon(self, rendered: RenderedIcon) -> IconRecord: ...

    def write_catalog(self, entries: Iterable[CatalogEntry]) -> Optional[Path]: ...


def display_size(width: int, height: int, max_side: int = 64) -> Tuple[int, int]:
    """Размер превью: длинная сторона не больше `max_side`, пропорции сохраняются, минимум 1 px."""
    largest = max(width, height)
    if largest <= 0:
        return 1, 1
    scale = min(largest, max_side) / largest
    return max(1, round(width * scale)), max(1, round(height * scale))


def _written_members(family: IconFamily, all_variants: bool) -> List[IconName]:
    names = [family.primary]
    if family.secondary is not None and family.secondary != family.primary:
        names.append(family.secondary)
    if all_variants:
        names += [name for name in family.members if name not in names]
    return names


def assign_file_stems(families: Iterable[IconFamily], all_variants: bool = False) -> Dict[str, str]:
    """Уникальные имена выходных файлов для всех записываемых иконок.

    Иконка получает `display_name`, если оно ещё свободно. Иначе берётся
    полный путь с расширением (`b/Icon.png` -> `b_Icon_png`), затем числовой
    суффикс. Имена сравниваются без учёта регистра и раздаются в порядке
    каталога, поэтому результат детерминирован.

    Returns:
        Словарь `IconName.raw` -> имя файла без расширения.
    """
    taken: Set[str] = set()
    stems: Dict[str, str] = {}
    for family in families:
        for name in _written_members(family, all_variants):
            qualified = f"{name.stem}_{name.extension}" if name.extension else name.stem
            qualified = qualified.replace("\\", "/").strip("/").replace("/", "_")
            candidates = [name.display_name, qualified]
            stem = next((c for c in candidates if c.lower() not in taken), None)
            n = 2
            while stem is None:
                candidate = f"{qualified}_{n}"
                stem = candidate if candidate.lower() not in taken else None
                n += 1
            if stem != name.display_name:
                logger.warning("Output name %r is already used; writing %s as %r", name.display_name, name, stem)
            taken.add(stem.lower())
            stems[name.raw] = stem
    return stems


@dataclass
class _FamilyOutcome:
    entry: Optional[CatalogEntry] = None
    missing: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    exported: int = 0


class MinerService:
    def __init__(
        self,
        source: AssetSource,
        sink: IconSink,
        settings: Optional[MinerSettings] = None,
        render_backend: Optional[RenderBackend] = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.settings = settings or MinerSettings()
        color_space = self.settings.color_space
        self.grouper = VariantGrouper()
        self.luminance = LuminanceService(color_space)
        self.compositor = CompositeService(color_space)
        self.extractor = ExtractionService(render_backend or SoftwareRenderBackend(), color_space)

    def run(self, progress: Optional[ProgressCallback] = None) -> MiningReport:
        """Обрабатывает все иконки источника и пишет каталог.

        Args:
            progress: Вызывается после каждого семейства: (готово, всего, имя).

        Returns:
            `MiningReport` с записями каталога в порядке семейств.

        Raises:
            Исключения `AssetSource.enumerate()` (например, FileNotFoundError).
        """
        names = self.source.enumerate()
        families = self.grouper.group(names)
        logger.info("Found %d asset(s) in %d icon family(ies)", len(names), len(families))
        file_stems = assign_file_stems(families, self.settings.export_all_variants)
        self.sink.prepare()

        outcomes = self._process_families(families, file_stems, progress)

        report = MiningReport()
        for outcome in outcomes:
            if outcome.entry is not None:
                report.entries.append(outcome.entry)
            report.missing.extend(outcome.missing)
            report.failed.extend(outcome.failed)
            report.exported += outcome.exported

        report.readme_path = self.sink.write_catalog(report.entries)
        logger.info(
            "Exported %d icon(s), %d catalog row(s), %d missing, %d failed",
            report.exported, len(report.entries), len(report.missing), len(report.failed),
        )
        return report

    def _process_families(
        self, families: List[IconFamily], file_stems: Dict[str, str], progress: Optional[ProgressCallback]
    ) -> List[_FamilyOutcome]:
        total = len(families)
        workers = self.settings.max_workers
        if workers <= 1 or total <= 1:
            outcomes: List[_FamilyOutcome] = []
            for i, family in enumerate(families):
                outcomes.append(self._process_family(family, file_stems))
                if progress:
                    progress(i + 1, total, family.primary.display_name)
            return outcomes

        # catalog order is restored by index after the pool drains
        ordered: List[Optional[_FamilyOutcome]] = [None] * total
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self._process_family, family, file_stems): i for i, family in enumerate(families)}
            for done, future in enumerate(as_completed(futures), start=1):
                index = futures[future]
                ordered[index] = future.result()
                if progress:
                    progress(done, total, families[index].primary.display_name)
        return [outcome for outcome in ordered if outcome is not None]

    def _process_family(self, family: IconFamily, file_stems: Dict[str, str]) -> _FamilyOutcome:
        outcome = _FamilyOutcome()
        primary = self._process_icon(family.primary, outcome, file_stems, is_primary=True)

        secondary: Optional[IconRecord] = None
        if family.secondary is not None:
            if family.secondary == family.primary:
                secondary = primary
            else:
                secondary = self._process_icon(family.secondary, outcome, file_stems, is_primary=False)

        if self.settings.export_all_variants:
            for name in family.members:
                if name not in (family.primary, family.secondary):
                    self._process_icon(name, outcome, file_stems, is_primary=False)

        if primary is not None:
            outcome.entry = CatalogEntry(family=family, primary=primary, secondary=secondary)
        return outcome

    def _process_icon(
        self, name: IconName, outcome: _FamilyOutcome, file_stems: Dict[str, str], is_primary: bool
    ) -> Optional[IconRecord]:
        try:
            texture = self.source.load(name.raw)
            if texture is None:
                logger.warning("Skipping %s: asset could not be loaded", name)
                outcome.missing.append(name.raw)
                return None

            with self.extractor.extract(texture) as raster:
                is_light = self.luminance.is_predominantly_light(
                    raster, min_alpha=self.settings.min_alpha, stride=self.settings.sample_stride
                )
                background = self.settings.dark_color if is_light else self.settings.light_color
                composite = self.compositor.composite(raster, background)

            size = display_size(composite.width, composite.height, self.settings.max_display_size) if is_primary else None
            rendered = RenderedIcon(
                name=name,
                width=composite.width,
                height=composite.height,
                is_light=is_light,
                composite=composite,
                display_size=size,
                file_stem=file_stems.get(name.raw),
            )
            record = self.sink.write_icon(rendered)
            outcome.exported += 1
            return record
        except Exception:
            logger.exception("Failed to process icon %s", name)
            outcome.failed.append(name.raw)
            return None
