"""Боковая панель: выбор папок, параметры извлечения, информация об иконке.

Принципы:
- SRP: управляет только UI параметров, не содержит алгоритмов.
- ISP: выдаёт параметры через компактные методы `get_*`, события через `on_*`.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

import customtkinter as ctk

from icons_miner.models.icon_model import IconRecord
from icons_miner.models.raster_model import ColorSpace

_COLOR_SPACE_LABELS = {"Linear": ColorSpace.LINEAR, "Gamma": ColorSpace.GAMMA}


def _rgb_to_hex(rgb: Tuple[int, ...]) -> str:
    """Преобразует RGB в HEX."""
    r, g, b = rgb[:3]
    return f"#{r:02X}{g:02X}{b:02X}"


class Sidebar(ctk.CTkFrame):
    """Панель инструментов с блоками: источник, параметры, иконка, курсор."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=280, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_choose_source: Optional[Callable[[], None]] = None
        self.on_choose_output: Optional[Callable[[], None]] = None
        self.on_run: Optional[Callable[[], None]] = None

        # Source section
        self._title = ctk.CTkLabel(self, text="Инструменты", font=ctk.CTkFont(size=16, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._source_btn = ctk.CTkButton(self, text="Папка с иконками…", command=self._emit_choose_source)
        self._source_btn.grid(row=1, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._source_val = ctk.StringVar(value="—")
        self._source_label = ctk.CTkLabel(self, textvariable=self._source_val, wraplength=250, anchor="w", justify="left")
        self._source_label.grid(row=2, column=0, padx=8, pady=(0, 6), sticky="ew")

        self._output_btn = ctk.CTkButton(self, text="Папка вывода…", command=self._emit_choose_output)
        self._output_btn.grid(row=3, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._output_val = ctk.StringVar(value="—")
        self._output_label = ctk.CTkLabel(self, textvariable=self._output_val, wraplength=250, anchor="w", justify="left")
        self._output_label.grid(row=4, column=0, padx=8, pady=(0, 10), sticky="ew")

        # Parameters
        self._params_title = ctk.CTkLabel(self, text="Параметры", font=ctk.CTkFont(size=16, weight="bold"))
        self._params_title.grid(row=5, column=0, padx=8, pady=(8, 4), sticky="w")

        self._color_space_label = ctk.CTkLabel(self, text="Цветовое пространство", anchor="w")
        self._color_space_label.grid(row=6, column=0, padx=8, pady=(0, 2), sticky="w")
        self._color_space_menu = ctk.CTkOptionMenu(self, values=list(_COLOR_SPACE_LABELS))
        self._color_space_menu.set("Linear")
        self._color_space_menu.grid(row=7, column=0, padx=8, pady=(0, 6), sticky="ew")

        self._prefix_label = ctk.CTkLabel(self, text="Префикс ассетов", anchor="w")
        self._prefix_label.grid(row=8, column=0, padx=8, pady=(0, 2), sticky="w")
        self._prefix_val = ctk.StringVar(value="")
        self._prefix_entry = ctk.CTkEntry(self, textvariable=self._prefix_val)
        self._prefix_entry.grid(row=9, column=0, padx=8, pady=(0, 6), sticky="ew")

        self._all_variants = ctk.BooleanVar(value=False)
        self._all_variants_switch = ctk.CTkSwitch(self, text="Все варианты", variable=self._all_variants)
        self._all_variants_switch.grid(row=10, column=0, padx=8, pady=(0, 8), sticky="w")

        self._run_btn = ctk.CTkButton(self, text="Извлечь иконки", command=self._emit_run)
        self._run_btn.grid(row=11, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Icon info section
        self._info_title = ctk.CTkLabel(self, text="Иконка", font=ctk.CTkFont(size=16, weight="bold"))
        self._info_title.grid(row=12, column=0, padx=8, pady=(8, 4), sticky="w")

        self._name_val = ctk.StringVar(value="—")
        self._dims_val = ctk.StringVar(value="—")
        self._display_val = ctk.StringVar(value="—")
        self._background_val = ctk.StringVar(value="—")
        self._secondary_val = ctk.StringVar(value="—")

        for row, var in enumerate(
            (self._name_val, self._dims_val, self._display_val, self._background_val, self._secondary_val), start=13
        ):
            label = ctk.CTkLabel(self, textvariable=var, wraplength=250, anchor="w", justify="left")
            label.grid(row=row, column=0, padx=8, pady=(0, 2), sticky="ew")

        # Cursor section
        self._cursor_title = ctk.CTkLabel(self, text="Курсор", font=ctk.CTkFont(size=16, weight="bold"))
        self._cursor_title.grid(row=20, column=0, padx=8, pady=(8, 4), sticky="w")

        self._cursor_xy_val = ctk.StringVar(value="—")
        self._cursor_rgb_val = ctk.StringVar(value="—")
        self._cursor_hex_val = ctk.StringVar(value="—")

        self._cursor_xy = ctk.CTkLabel(self, textvariable=self._cursor_xy_val, anchor="w", justify="left")
        self._cursor_rgb = ctk.CTkLabel(self, textvariable=self._cursor_rgb_val, anchor="w", justify="left")
        self._cursor_hex = ctk.CTkLabel(self, textvariable=self._cursor_hex_val, anchor="w", justify="left")

        self._cursor_xy.grid(row=21, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._cursor_rgb.grid(row=22, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._cursor_hex.grid(row=23, column=0, padx=8, pady=(0, 2), sticky="ew")

        # filler
        self.grid_rowconfigure(99, weight=1)

    # ---- Public API ----
    def set_paths(self, source: str, output: str) -> None:
        self._source_val.set(source or "—")
        self._output_val.set(output or "—")

    def set_params(self, color_space: ColorSpace, prefix: str, export_all_variants: bool) -> None:
        """Синхронизирует элементы параметров с сохранёнными настройками."""
        label = next((k for k, v in _COLOR_SPACE_LABELS.items() if v is color_space), "Linear")
        self._color_space_menu.set(label)
        self._prefix_val.set(prefix)
        self._all_variants.set(export_all_variants)

    def set_running(self, running: bool) -> None:
        state = "disabled" if running else "normal"
        for widget in (self._run_btn, self._source_btn, self._output_btn):
            widget.configure(state=state)

    def set_icon_info(self, primary: Optional[IconRecord], secondary: Optional[IconRecord] = None) -> None:
        """Отображает данные выбранной иконки каталога."""
        if primary is None:
            for var in (self._name_val, self._dims_val, self._display_val, self._background_val, self._secondary_val):
                var.set("—")
            return
        self._name_val.set(primary.name.display_name)
        self._dims_val.set(f"{primary.width} × {primary.height} px")
        if primary.display_size:
            w, h = primary.display_size
            self._display_val.set(f"В каталоге: {w} × {h} px")
        else:
            self._display_val.set("—")
        self._background_val.set("Фон: тёмный (светлая иконка)" if primary.is_light else "Фон: светлый (тёмная иконка)")
        if secondary is not None:
            self._secondary_val.set(f"Второй вариант: {secondary.name.display_name} ({secondary.width} × {secondary.height})")
        else:
            self._secondary_val.set("Второй вариант: нет")

    def update_cursor_info(self, x: Optional[int], y: Optional[int], rgb: Optional[Tuple[int, ...]]) -> None:
        """Обновляет информацию по курсору (координаты, RGB, HEX)."""
        if x is None or y is None or rgb is None:
            self._cursor_xy_val.set("—")
            self._cursor_rgb_val.set("—")
            self._cursor_hex_val.set("—")
            return
        self._cursor_xy_val.set(f"({x}, {y})")
        r, g, b = rgb[:3]
        self._cursor_rgb_val.set(f"RGB: {r}, {g}, {b}")
        self._cursor_hex_val.set(f"HEX: {_rgb_to_hex(rgb)}")

    def get_color_space(self) -> ColorSpace:
        return _COLOR_SPACE_LABELS.get(self._color_space_menu.get(), ColorSpace.LINEAR)

    def get_prefix(self) -> str:
        try:
            return self._prefix_val.get().strip()
        except Exception:
            return ""

    def get_export_all_variants(self) -> bool:
        return bool(self._all_variants.get())

    # ---- Events ----
    def _emit_choose_source(self) -> None:
        if self.on_choose_source:
            self.on_choose_source()

    def _emit_choose_output(self) -> None:
        if self.on_choose_output:
            self.on_choose_output()

    def _emit_run(self) -> None:
        if self.on_run:
            self.on_run()
