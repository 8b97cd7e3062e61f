import os
from types import SimpleNamespace

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from weavinator.app import preview  # noqa: E402
from weavinator.app.preview import PreviewWindow, qimage_from_raster  # noqa: E402
from weavinator.core.params import DEFAULT_CONFIG, WeavePattern  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def window(qapp):
    w = PreviewWindow()
    w.timer.stop()
    yield w
    w.close()


def test_qimage_from_raster(qapp, gradient):
    img = qimage_from_raster(gradient)
    assert (img.width(), img.height()) == (90, 70)
    c = img.pixelColor(5, 3)
    assert (c.red(), c.green(), c.blue()) == tuple(int(v) for v in gradient[3, 5])


def test_tick_without_image_is_a_no_op(window):
    window.on_tick()
    assert window.preview.pixmap() is None or window.preview.pixmap().isNull()


def test_load_syncs_controls_and_renders(window, gradient):
    window.load_raster(gradient)
    assert window.animator.running
    assert window.sliders["tile size"].value() == 7
    assert window.sliders["horizontal"].value() == 4
    window.on_tick()
    assert window.animator.frame_index == 1
    assert not window.preview.pixmap().isNull()


def test_controls_update_target(window, gradient):
    window.load_raster(gradient)
    window.cb_pattern.setCurrentText("basket")
    window.sliders["scatter %"].setValue(40)
    assert window.animator.target.pattern is WeavePattern.BASKET
    assert window.animator.target.scatter_intensity == 40


def test_reset(window, gradient):
    window.load_raster(gradient)
    window.on_reset()
    assert window.animator.source is None
    assert not window.animator.running


def test_grid_presets_disabled_without_image(window):
    assert all(not b.isEnabled() for b in window.preset_buttons.values())
    window.on_grid_preset(4)
    assert window.animator.target.tile_size == DEFAULT_CONFIG.tile_size
    assert window.lbl_grid.text() == ""


def test_grid_preset_sets_tile_size_and_readout(window, gradient):
    window.load_raster(gradient)
    assert window.lbl_grid.text() == "13x10"
    window.preset_buttons[4].click()
    assert window.animator.target.tile_size == 17
    assert window.sliders["tile size"].value() == 17
    assert window.lbl_grid.text() == "5x4"


def test_tile_slider_updates_readout(window, gradient):
    window.load_raster(gradient)
    window.sliders["tile size"].setValue(30)
    assert window.lbl_grid.text() == "3x2"


def test_export_failure_shows_error(window, gradient, monkeypatch, tmp_path):
    window.load_raster(gradient)
    shown = []

    def failing_save(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(preview, "save_png", failing_save)
    monkeypatch.setattr(
        preview, "QFileDialog", SimpleNamespace(getSaveFileName=lambda *a, **k: (str(tmp_path / "out.png"), ""))
    )
    monkeypatch.setattr(preview, "QMessageBox", SimpleNamespace(critical=lambda *a: shown.append(a[2])))
    window.on_export()
    assert len(shown) == 1
    assert "disk full" in shown[0]
