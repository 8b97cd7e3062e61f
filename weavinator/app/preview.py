from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

import numpy as np
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QSlider,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from ..core.animator import WeaveAnimator
from ..core.params import (
    GRID_DIVISIONS,
    MAX_PERCENT,
    MAX_SHIFT,
    MAX_TILE_SIZE,
    MIN_TILE_SIZE,
    WeaveConfig,
    WeavePattern,
    grid_readout,
    suggest_config,
    tile_size_for_division,
)
from ..utils.export import export_filename, save_png
from ..utils.image_ops import RasterError, as_raster, load_raster

logger = logging.getLogger(__name__)

FRAME_MS = 16

# slider name -> (config field, min, max)
SLIDERS = {
    "tile size": ("tile_size", MIN_TILE_SIZE, MAX_TILE_SIZE),
    "horizontal": ("horizontal_shift", 0, int(MAX_SHIFT)),
    "vertical": ("vertical_shift", 0, int(MAX_SHIFT)),
    "scatter %": ("scatter_intensity", 0, int(MAX_PERCENT)),
}


def qimage_from_raster(raster: np.ndarray) -> QImage:
    rgb = np.ascontiguousarray(as_raster(raster)[..., :3])
    if rgb.shape[2] == 1:
        rgb = np.repeat(rgb, 3, axis=2)
    h, w = rgb.shape[:2]
    data = rgb.tobytes()
    # copy() so the QImage owns its pixels once data goes away
    return QImage(data, w, h, 3 * w, QImage.Format_RGB888).copy()


class PreviewWindow(QWidget):
    def __init__(self, animator: Optional[WeaveAnimator] = None):
        super().__init__()
        self.setWindowTitle("Weavinator")
        self.resize(1280, 800)
        self.setMinimumSize(800, 600)

        self.animator = animator or WeaveAnimator()
        self.sliders: Dict[str, QSlider] = {}
        self._syncing = False

        self._build_ui()
        self._sync_controls()

        self.timer = QTimer(self)
        self.timer.timeout.connect(self.on_tick)
        self.timer.start(FRAME_MS)

    def _build_ui(self):
        root = QHBoxLayout(self)

        side = QVBoxLayout()
        buttons = QHBoxLayout()
        self.btn_load = QPushButton("load")
        self.btn_export = QPushButton("export png")
        self.btn_reset = QPushButton("reset")
        for b in (self.btn_load, self.btn_export, self.btn_reset):
            buttons.addWidget(b)
        side.addLayout(buttons)

        self.cb_pattern = QComboBox()
        self.cb_pattern.addItems([p.value for p in WeavePattern])
        side.addWidget(QLabel("pattern"))
        side.addWidget(self.cb_pattern)

        grid_head = QHBoxLayout()
        grid_head.addWidget(QLabel("grid division"))
        self.lbl_grid = QLabel("")
        self.lbl_grid.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        grid_head.addWidget(self.lbl_grid)
        side.addLayout(grid_head)
        presets = QHBoxLayout()
        self.preset_buttons: Dict[int, QPushButton] = {}
        for div in GRID_DIVISIONS:
            b = QPushButton(f"{div}x")
            b.clicked.connect(lambda _=False, d=div: self.on_grid_preset(d))
            presets.addWidget(b)
            self.preset_buttons[div] = b
        side.addLayout(presets)

        for label, (_, lo, hi) in SLIDERS.items():
            s = QSlider(Qt.Horizontal)
            s.setRange(lo, hi)
            s.valueChanged.connect(self.on_controls_changed)
            side.addWidget(QLabel(label))
            side.addWidget(s)
            self.sliders[label] = s

        self.spin_seed = QSpinBox()
        self.spin_seed.setRange(-(2**31), 2**31 - 1)
        side.addWidget(QLabel("seed"))
        side.addWidget(self.spin_seed)
        side.addStretch(1)

        self.preview = QLabel("load an image")
        self.preview.setAlignment(Qt.AlignCenter)
        self.preview.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

        root.addLayout(side, 0)
        root.addWidget(self.preview, 1)

        self.btn_load.clicked.connect(self.on_load)
        self.btn_export.clicked.connect(self.on_export)
        self.btn_reset.clicked.connect(self.on_reset)
        self.cb_pattern.currentTextChanged.connect(self.on_controls_changed)
        self.spin_seed.valueChanged.connect(self.on_controls_changed)

    def _sync_controls(self):
        cfg = self.animator.target
        self._syncing = True
        try:
            for label, (name, _, _) in SLIDERS.items():
                self.sliders[label].setValue(int(round(getattr(cfg, name))))
            self.cb_pattern.setCurrentText(WeavePattern(cfg.pattern).value)
            self.spin_seed.setValue(int(cfg.seed))
        finally:
            self._syncing = False
        self._update_grid()

    def _update_grid(self):
        source = self.animator.source
        for b in self.preset_buttons.values():
            b.setEnabled(source is not None)
        if source is None:
            self.lbl_grid.setText("")
            return
        h, w = source.shape[:2]
        cols, rows = grid_readout(w, h, self.animator.target.tile_size)
        self.lbl_grid.setText(f"{cols}x{rows}")

    def config_from_controls(self) -> WeaveConfig:
        values = {name: self.sliders[label].value() for label, (name, _, _) in SLIDERS.items()}
        values["pattern"] = self.cb_pattern.currentText()
        values["seed"] = self.spin_seed.value()
        return WeaveConfig.from_mapping(values, base=self.animator.target)

    def on_controls_changed(self, *_):
        if self._syncing:
            return
        self.animator.set_target(self.config_from_controls())
        self._update_grid()

    def on_grid_preset(self, division: int):
        source = self.animator.source
        if source is None:
            return
        h, w = source.shape[:2]
        size = tile_size_for_division(w, h, division)
        self.animator.set_target(WeaveConfig.from_mapping({"tile_size": size}, base=self.animator.target))
        self._sync_controls()

    def load_raster(self, raster: np.ndarray):
        h, w = raster.shape[:2]
        self.animator.load(raster, suggest_config(w, h, base=self.animator.target))
        self._sync_controls()

    def on_load(self):
        fn, _ = QFileDialog.getOpenFileName(self, "choose an image", "", "Images (*.png *.jpg *.jpeg *.webp *.bmp)")
        if not fn:
            return
        try:
            raster = load_raster(fn)
        except RasterError as e:
            logger.warning("failed to load %s: %s", fn, e)
            QMessageBox.critical(self, "error", f"Failed to load image:\n{e}")
            return
        self.load_raster(raster)

    def on_export(self):
        if self.animator.source is None:
            QMessageBox.warning(self, "no image", "load an image first.")
            return
        fn, _ = QFileDialog.getSaveFileName(self, "save png", export_filename(), "PNG (*.png)")
        if not fn:
            return
        path = Path(fn)
        try:
            save_png(self.animator.require_frame(), path.parent, path.name)
        except OSError as e:
            logger.error("failed to save %s: %s", fn, e)
            QMessageBox.critical(self, "error", f"Failed to save image:\n{e}")

    def on_reset(self):
        self.animator.reset()
        self.preview.clear()
        self.preview.setText("load an image")
        self._update_grid()

    def on_tick(self):
        frame = self.animator.tick()
        if frame is None:
            return
        pix = QPixmap.fromImage(qimage_from_raster(frame))
        self.preview.setPixmap(pix.scaled(self.preview.size(), Qt.KeepAspectRatio, Qt.FastTransformation))

    def closeEvent(self, event):
        self.timer.stop()
        self.animator.stop()
        super().closeEvent(event)


def main(path: Optional[str] = None) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    w = PreviewWindow()
    if path:
        w.load_raster(load_raster(path))
    w.show()
    return app.exec()
