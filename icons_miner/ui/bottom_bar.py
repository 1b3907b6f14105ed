from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

ZOOM_PRESETS = (100, 200, 400, 800)


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=64, **kwargs)

        # callbacks
        self.on_zoom_change: Optional[Callable[[int], None]] = None
        self.on_zoom_preset: Optional[Callable[[int], None]] = None
        self.on_zoom_fit: Optional[Callable[[], None]] = None
        self.on_prev: Optional[Callable[[], None]] = None
        self.on_next: Optional[Callable[[], None]] = None

        # layout
        self.grid_rowconfigure((0, 1), weight=1)
        self.grid_columnconfigure(4, weight=1)  # slider stretches

        # Navigation
        self._prev_btn = ctk.CTkButton(self, text="◀", width=36, command=self._emit_prev)
        self._prev_btn.grid(row=0, column=0, padx=(10, 4), pady=8, sticky="w")
        self._position_val = ctk.StringVar(value="0 / 0")
        self._position_label = ctk.CTkLabel(self, textvariable=self._position_val, width=80)
        self._position_label.grid(row=0, column=1, padx=4, pady=8, sticky="w")
        self._next_btn = ctk.CTkButton(self, text="▶", width=36, command=self._emit_next)
        self._next_btn.grid(row=0, column=2, padx=(4, 12), pady=8, sticky="w")

        # Zoom controls
        self._zoom_label = ctk.CTkLabel(self, text="Масштаб")
        self._zoom_label.grid(row=0, column=3, padx=(10, 6), pady=8, sticky="w")

        self._zoom_value = ctk.StringVar(value="100%")
        self._zoom_slider = ctk.CTkSlider(self, from_=25, to=1600, number_of_steps=315, command=self._on_slider_change)
        self._zoom_slider.set(100)
        self._zoom_slider.grid(row=0, column=4, padx=6, pady=8, sticky="ew")
        self._zoom_value_label = ctk.CTkLabel(self, textvariable=self._zoom_value, width=56, anchor="w")
        self._zoom_value_label.grid(row=0, column=5, padx=(6, 12), pady=8, sticky="w")

        # Presets + Fit
        self._preset_buttons = ctk.CTkSegmentedButton(
            self,
            values=["Fit"] + [f"{p}%" for p in ZOOM_PRESETS],
            command=self._on_preset_click,
        )
        self._preset_buttons.set("Fit")
        self._preset_buttons.grid(row=0, column=6, padx=(6, 10), pady=8, sticky="e")

        # Progress
        self._progress = ctk.CTkProgressBar(self)
        self._progress.set(0)
        self._progress.grid(row=1, column=0, columnspan=5, padx=10, pady=(0, 8), sticky="ew")
        self._status_val = ctk.StringVar(value="Выберите папку с иконками")
        self._status_label = ctk.CTkLabel(self, textvariable=self._status_val, anchor="w")
        self._status_label.grid(row=1, column=5, columnspan=2, padx=(6, 10), pady=(0, 8), sticky="ew")

    # public API (sync from controller)
    def set_zoom_percent(self, percent: int) -> None:
        self._zoom_slider.set(percent)
        self._zoom_value.set(f"{percent}%")
        # keep segmented selection meaningful but don't force exact match
        if percent in ZOOM_PRESETS:
            self._preset_buttons.set(f"{percent}%")

    def set_progress(self, done: int, total: int, name: str = "") -> None:
        self._progress.set(done / total if total else 0)
        self._status_val.set(f"{done}/{total} {name}".strip())

    def set_status(self, text: str) -> None:
        self._status_val.set(text)

    def set_position(self, index: int, count: int) -> None:
        self._position_val.set(f"{index + 1 if count else 0} / {count}")

    # events
    def _on_slider_change(self, value: float) -> None:
        percent = int(round(value))
        self._zoom_value.set(f"{percent}%")
        if self.on_zoom_change:
            self.on_zoom_change(percent)

    def _on_preset_click(self, value: str) -> None:
        if value == "Fit":
            if self.on_zoom_fit:
                self.on_zoom_fit()
            return
        if value.endswith("%"):
            try:
                percent = int(value[:-1])
            except ValueError:
                return
            if self.on_zoom_preset:
                self.on_zoom_preset(percent)

    def _emit_prev(self) -> None:
        if self.on_prev:
            self.on_prev()

    def _emit_next(self) -> None:
        if self.on_next:
            self.on_next()
