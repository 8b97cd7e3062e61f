"""
Weavinator - web version.

Run: python -m weavinator web
The browser opens on http://localhost:5000
"""

from __future__ import annotations

import io
import logging
import threading
import webbrowser
from threading import Timer

from flask import Flask, Response, jsonify, render_template_string, request, send_file

from ..core.animator import WeaveAnimator
from ..core.params import (
    DEFAULT_CONFIG,
    GRID_DIVISIONS,
    WeaveConfig,
    WeaveConfigError,
    WeavePattern,
    grid_readout,
    suggest_config,
    tile_size_for_division,
)
from ..utils.export import encode_png, export_filename
from ..utils.image_ops import RasterError, generate_random_shapes, load_raster

logger = logging.getLogger(__name__)

MAX_UPLOAD = 16 * 1024 * 1024
MAX_GENERATED_SIDE = 4096

HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Weavinator</title>
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body { font-family: 'Helvetica Neue', Arial, sans-serif; background: #0f172a; color: #e2e8f0; font-size: 14px; }
        .container { display: flex; gap: 20px; padding: 20px; min-height: 100vh; }
        .controls { width: 340px; flex-shrink: 0; display: flex; flex-direction: column; gap: 14px; }
        .group { border: 1px solid #334155; border-radius: 12px; padding: 16px; background: #111827; }
        .row { display: flex; align-items: center; gap: 10px; margin-bottom: 10px; }
        .row label { flex: 0 0 110px; }
        .row input[type=range] { flex: 1; }
        .row output { width: 44px; text-align: right; font-family: monospace; }
        .preview { flex: 1; display: flex; align-items: center; justify-content: center; background: #020617;
                   border-radius: 12px; border: 1px solid #334155; min-height: 500px; }
        #frame { max-width: 100%; max-height: 85vh; image-rendering: pixelated; }
        .btn { background: #0891b2; border: none; border-radius: 8px; padding: 10px 16px; color: #fff; cursor: pointer; }
        .btn.ghost { background: transparent; border: 1px solid #475569; }
        select, input[type=number] { flex: 1; background: #020617; color: #e2e8f0; border: 1px solid #475569;
                                     border-radius: 8px; padding: 6px; }
        input[type=file] { display: none; }
        .presets .preset { flex: 1; padding: 6px 0; font-family: monospace; }
        .readout { margin-left: auto; font-family: monospace; color: #64748b; }
    </style>
</head>
<body>
<div class="container">
    <div class="controls">
        <div class="group">
            <div class="row">
                <button class="btn" id="btnImport">Import image</button>
                <button class="btn ghost" id="btnGenerate">Generate</button>
            </div>
            <div class="row">
                <button class="btn" id="btnExport">Export PNG</button>
                <button class="btn ghost" id="btnReset">Reset</button>
            </div>
            <input type="file" id="fileInput" accept="image/*">
        </div>
        <div class="group">
            <div class="row">
                <label>pattern</label>
                <select id="pattern">
                    {% for p in patterns %}<option value="{{ p }}">{{ p }}</option>{% endfor %}
                </select>
            </div>
            <div class="row"><label>grid division</label><span id="gridReadout" class="readout"></span></div>
            <div class="row presets">
                {% for d in divisions %}<button class="btn ghost preset" data-division="{{ d }}">{{ d }}x</button>{% endfor %}
            </div>
            <div class="row"><label>tile size</label>
                <input type="range" data-param="tileSize" min="2" max="200" step="1"><output></output></div>
            <div class="row"><label>horizontal</label>
                <input type="range" data-param="horizontalShift" min="0" max="200" step="1"><output></output></div>
            <div class="row"><label>vertical</label>
                <input type="range" data-param="verticalShift" min="0" max="200" step="1"><output></output></div>
            <div class="row"><label>scatter %</label>
                <input type="range" data-param="scatterIntensity" min="0" max="100" step="1"><output></output></div>
            <div class="row"><label>seed</label>
                <input type="number" id="seed" step="1"></div>
        </div>
    </div>
    <div class="preview"><img id="frame" alt=""></div>
</div>
<script>
    const state = { loaded: false, settings: {{ settings|tojson }} };
    const frame = document.getElementById('frame');

    async function pushSettings() {
        const response = await fetch('/settings', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify(state.settings)
        });
        const result = await response.json();
        if (result.success) syncControls(result.settings, result.grid);
    }

    function syncControls(settings, grid) {
        state.settings = settings;
        document.getElementById('gridReadout').textContent = grid ? grid[0] + 'x' + grid[1] : '';
        document.querySelectorAll('input[type=range]').forEach(el => {
            el.value = settings[el.dataset.param];
            el.nextElementSibling.textContent = Math.round(settings[el.dataset.param]);
        });
        document.getElementById('pattern').value = settings.pattern;
        document.getElementById('seed').value = settings.seed;
    }

    async function animate() {
        if (state.loaded) {
            try {
                const response = await fetch('/frame');
                if (response.status === 200) {
                    const blob = await response.blob();
                    const old = frame.src;
                    frame.src = URL.createObjectURL(blob);
                    if (old) URL.revokeObjectURL(old);
                }
            } catch (error) {
                console.error('Frame error:', error);
            }
        }
        requestAnimationFrame(animate);
    }

    async function loadFrom(response) {
        const result = await response.json();
        if (!result.success) { alert(result.error); return; }
        syncControls(result.settings, result.grid);
        state.loaded = true;
    }

    document.getElementById('btnImport').addEventListener('click', () => document.getElementById('fileInput').click());
    document.getElementById('fileInput').addEventListener('change', async (e) => {
        const file = e.target.files[0];
        if (!file) return;
        const formData = new FormData();
        formData.append('file', file);
        await loadFrom(await fetch('/upload', { method: 'POST', body: formData }));
    });
    document.getElementById('btnGenerate').addEventListener('click', async () => {
        await loadFrom(await fetch('/generate', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({ width: 512, height: 512, angularity: 0.5 })
        }));
    });
    document.getElementById('btnExport').addEventListener('click', () => { if (state.loaded) window.location = '/export'; });
    document.getElementById('btnReset').addEventListener('click', async () => {
        const response = await fetch('/reset', { method: 'POST' });
        const result = await response.json();
        state.loaded = false;
        frame.removeAttribute('src');
        syncControls(result.settings);
    });
    document.querySelectorAll('input[type=range]').forEach(el => {
        el.addEventListener('input', () => {
            state.settings[el.dataset.param] = parseFloat(el.value);
            el.nextElementSibling.textContent = el.value;
            pushSettings();
        });
    });
    document.querySelectorAll('.preset').forEach(el => {
        el.addEventListener('click', async () => {
            if (!state.loaded) return;
            const response = await fetch('/grid', {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify({ division: parseInt(el.dataset.division) })
            });
            const result = await response.json();
            if (result.success) syncControls(result.settings, result.grid);
        });
    });
    document.getElementById('pattern').addEventListener('change', (e) => { state.settings.pattern = e.target.value; pushSettings(); });
    document.getElementById('seed').addEventListener('change', (e) => { state.settings.seed = parseInt(e.target.value || '0'); pushSettings(); });

    syncControls(state.settings);
    animate();
</script>
</body>
</html>
"""


def _camel(cfg: WeaveConfig) -> dict:
    d = cfg.to_dict()
    return {
        "tileSize": d["tile_size"],
        "horizontalShift": d["horizontal_shift"],
        "verticalShift": d["vertical_shift"],
        "scatterIntensity": d["scatter_intensity"],
        "pattern": d["pattern"],
        "seed": d["seed"],
        "opacity": d["opacity"],
    }


def _error(message: str, status: int = 400):
    return jsonify({"success": False, "error": message}), status


def create_app(animator: WeaveAnimator | None = None) -> Flask:
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD

    anim = animator or WeaveAnimator()
    # the dev server is threaded; ticks must not overlap
    lock = threading.Lock()
    app.extensions["weavinator"] = anim

    def _state(**extra):
        # callers hold the lock
        body = {"success": True, "settings": _camel(anim.target)}
        if anim.source is not None:
            h, w = anim.source.shape[:2]
            body["grid"] = list(grid_readout(w, h, anim.target.tile_size))
        body.update(extra)
        return jsonify(body)

    @app.route("/")
    def index():
        return render_template_string(
            HTML_TEMPLATE,
            patterns=[p.value for p in WeavePattern],
            divisions=GRID_DIVISIONS,
            settings=_camel(anim.target),
        )

    @app.route("/upload", methods=["POST"])
    def upload_image():
        file = request.files.get("file")
        if file is None:
            return _error("no file in request")
        try:
            raster = load_raster(file.stream)
        except RasterError as e:
            return _error(str(e))
        h, w = raster.shape[:2]
        with lock:
            anim.load(raster, suggest_config(w, h, base=anim.target))
            return _state(width=w, height=h)

    @app.route("/generate", methods=["POST"])
    def generate_pattern():
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return _error("expected a JSON object")
        try:
            width = int(data.get("width", 512))
            height = int(data.get("height", 512))
            angularity = float(data.get("angularity", 0.5))
            seed = data.get("seed")
            seed = None if seed is None else int(seed)
        except (TypeError, ValueError, OverflowError) as e:
            return _error(f"bad generate parameters: {e}")
        if not (1 <= width <= MAX_GENERATED_SIDE and 1 <= height <= MAX_GENERATED_SIDE):
            return _error(f"width and height must be within 1..{MAX_GENERATED_SIDE}")
        raster = generate_random_shapes(width, height, n=30, angularity=angularity, seed=seed)
        with lock:
            anim.load(raster, suggest_config(width, height, base=anim.target))
            return _state(width=width, height=height)

    @app.route("/settings", methods=["GET", "POST"])
    def settings():
        if request.method == "GET":
            with lock:
                return _state()
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error("expected a JSON object")
        with lock:
            try:
                cfg = WeaveConfig.from_mapping(data, base=anim.target)
            except WeaveConfigError as e:
                return _error(str(e))
            anim.set_target(cfg)
            return _state()

    @app.route("/grid", methods=["POST"])
    def grid_division():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error("expected a JSON object")
        try:
            division = int(data.get("division"))
        except (TypeError, ValueError, OverflowError):
            return _error(f"division: expected an integer, got {data.get('division')!r}")
        with lock:
            if anim.source is None:
                return _error("no image loaded", 409)
            h, w = anim.source.shape[:2]
            try:
                size = tile_size_for_division(w, h, division)
            except WeaveConfigError as e:
                return _error(str(e))
            anim.set_target(WeaveConfig.from_mapping({"tile_size": size}, base=anim.target))
            return _state()

    @app.route("/frame")
    def frame():
        with lock:
            if anim.source is None:
                return Response(status=204)
            img = anim.tick()
            if img is None:
                img = anim.require_frame()
            png = encode_png(img)
        return Response(png, mimetype="image/png")

    @app.route("/export")
    def export():
        with lock:
            try:
                png = encode_png(anim.require_frame())
            except RuntimeError as e:
                return _error(str(e), 409)
        return send_file(io.BytesIO(png), mimetype="image/png", as_attachment=True, download_name=export_filename())

    @app.route("/reset", methods=["POST"])
    def reset():
        with lock:
            anim.reset()
            anim.set_target(DEFAULT_CONFIG)
            return _state()

    return app


def open_browser(url: str) -> None:
    webbrowser.open(url)


def run(host: str = "127.0.0.1", port: int = 5000, browser: bool = True) -> None:
    app = create_app()
    url = f"http://{'localhost' if host in ('127.0.0.1', '0.0.0.0') else host}:{port}"
    logger.info("serving on %s", url)
    if browser:
        Timer(1.5, open_browser, args=(url,)).start()
    app.run(host=host, port=port, debug=False)
