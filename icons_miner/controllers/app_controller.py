"""Контроллер приложения: оркестрация UI и конвейера извлечения.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без обработки пикселей).
- DIP: зависит от сервисов как от ролей; источник и каталог создаются на прогон.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from tkinter import TclError, filedialog, messagebox
from typing import List, Optional, Tuple

import customtkinter as ctk

from icons_miner.config import MinerSettings, SettingsStore
from icons_miner.models.icon_model import CatalogEntry
from icons_miner.services.asset_service import DirectoryAssetSource
from icons_miner.services.catalog_service import CatalogService
from icons_miner.services.miner_service import MinerService
from icons_miner.ui.bottom_bar import BottomBar
from icons_miner.ui.image_viewer import ImageViewer
from icons_miner.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)


@dataclass
class AppController:
    """Связывает элементы UI с конвейером.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллер).
    - Выбор папок и сохранение их в настройках.
    - Запуск `MinerService` с прогрессом в нижней панели.
    - Навигация по записям каталога и синхронизация зума.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk
    settings_store: SettingsStore

    _settings: MinerSettings = field(default_factory=MinerSettings)
    _entries: List[CatalogEntry] = field(default_factory=list)
    _index: int = 0
    _catalog: Optional[CatalogService] = None

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами."""
        self._settings = self.settings_store.load()
        self.sidebar.set_paths(self._settings.source_dir, self._settings.output_dir)
        self.sidebar.set_params(self._settings.color_space, self._settings.prefix, self._settings.export_all_variants)

        self.sidebar.on_choose_source = self._handle_choose_source
        self.sidebar.on_choose_output = self._handle_choose_output
        self.sidebar.on_run = self._handle_run

        self.viewer.on_cursor_move = self._handle_cursor_move
        self.viewer.on_zoom_change = self._handle_viewer_zoom_changed

        self.bottom.on_zoom_change = self._handle_zoom_change
        self.bottom.on_zoom_preset = self._handle_zoom_change
        self.bottom.on_zoom_fit = self._handle_zoom_fit
        self.bottom.on_prev = lambda: self._show_entry(self._index - 1)
        self.bottom.on_next = lambda: self._show_entry(self._index + 1)
        self.window.bind("<Left>", lambda _e: self._show_entry(self._index - 1))
        self.window.bind("<Right>", lambda _e: self._show_entry(self._index + 1))

    # ---- Handlers ----
    def _ask_directory(self, title: str, initial: str) -> Optional[str]:
        try:
            path = filedialog.askdirectory(title=title, initialdir=initial or None, mustexist=False)
        except TclError:
            # Silent fail if dialog cannot open
            return None
        return path or None

    def _handle_choose_source(self) -> None:
        path = self._ask_directory("Выберите папку с иконками", self._settings.source_dir)
        if path:
            self._update_settings(source_dir=path)

    def _handle_choose_output(self) -> None:
        path = self._ask_directory("Выберите папку вывода", self._settings.output_dir)
        if path:
            self._update_settings(output_dir=path)

    def _handle_run(self) -> None:
        self._update_settings(
            color_space=self.sidebar.get_color_space(),
            prefix=self.sidebar.get_prefix(),
            export_all_variants=self.sidebar.get_export_all_variants(),
        )
        settings = self._settings
        if not settings.source_dir or not settings.output_dir:
            self.bottom.set_status("Сначала выберите обе папки")
            return

        source = DirectoryAssetSource(settings.source_dir, prefix=settings.prefix, extensions=settings.extensions)
        catalog = CatalogService(settings.output_dir, settings)
        miner = MinerService(source, catalog, settings)

        self.sidebar.set_running(True)
        try:
            report = miner.run(progress=self._handle_progress)
        except FileNotFoundError as exc:
            logger.error("%s", exc)
            messagebox.showerror("Icons Miner", str(exc))
            self.bottom.set_status("Ошибка: источник недоступен")
            return
        finally:
            self.sidebar.set_running(False)

        self._catalog = catalog
        self._entries = report.entries
        self.bottom.set_status(
            f"Готово: {report.exported} PNG, пропущено {len(report.missing)}, ошибок {len(report.failed)}"
        )
        self._show_entry(0)

    def _handle_progress(self, done: int, total: int, name: str) -> None:
        self.bottom.set_progress(done, total, name)
        # keep the window responsive during a synchronous run
        self.window.update_idletasks()

    def _handle_cursor_move(self, x: Optional[int], y: Optional[int], rgb: Optional[Tuple[int, ...]]) -> None:
        self.sidebar.update_cursor_info(x, y, rgb)

    def _handle_viewer_zoom_changed(self, zoom_percent: int) -> None:
        self.bottom.set_zoom_percent(zoom_percent)

    def _handle_zoom_change(self, zoom_percent: int) -> None:
        self.viewer.set_zoom_percent(zoom_percent)

    def _handle_zoom_fit(self) -> None:
        self.viewer.set_zoom_to_fit()
        self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())

    # ---- Helpers ----
    def _update_settings(self, **changes: object) -> None:
        self._settings = replace(self._settings, **changes)
        self.settings_store.save(self._settings)
        self.sidebar.set_paths(self._settings.source_dir, self._settings.output_dir)

    def _show_entry(self, index: int) -> None:
        """Показывает запись каталога с индексом `index` (с прокруткой по кругу)."""
        if not self._entries or self._catalog is None:
            self.viewer.clear()
            self.sidebar.set_icon_info(None)
            self.bottom.set_position(0, 0)
            return
        self._index = index % len(self._entries)
        entry = self._entries[self._index]
        records = [entry.primary] + ([entry.secondary] if entry.secondary else [])
        try:
            variants = [
                (self._catalog.load_preview(record), f"{record.name.display_name} {record.width}x{record.height}")
                for record in records
            ]
        except OSError as exc:
            logger.warning("Preview unavailable: %s", exc)
            self.bottom.set_status(str(exc))
            return

        self.viewer.set_variants(variants)
        self.sidebar.set_icon_info(entry.primary, entry.secondary)
        self.bottom.set_position(self._index, len(self._entries))
        self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())
