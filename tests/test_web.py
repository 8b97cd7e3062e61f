import io

import pytest
from PIL import Image

from conftest import png_bytes
from weavinator.app.web import create_app


@pytest.fixture
def app():
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def upload(client, raster, name="photo.png"):
    return client.post(
        "/upload",
        data={"file": (io.BytesIO(png_bytes(raster)), name)},
        content_type="multipart/form-data",
    )


def test_index_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Weavinator" in body
    for pattern in ("plain", "twill", "satin", "basket"):
        assert f'value="{pattern}"' in body


def test_no_frame_before_upload(client):
    assert client.get("/frame").status_code == 204


def test_upload_suggests_settings(client, gradient):
    resp = upload(client, gradient)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert (data["width"], data["height"]) == (90, 70)
    assert data["settings"]["tileSize"] == 7
    assert data["settings"]["horizontalShift"] == 4
    assert data["settings"]["verticalShift"] == 3


def test_frame_is_png_of_source_size(client, gradient):
    upload(client, gradient)
    resp = client.get("/frame")
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    img = Image.open(io.BytesIO(resp.data))
    assert img.size == (90, 70)


def test_frames_advance_the_animator(app, client, gradient):
    upload(client, gradient)
    anim = app.extensions["weavinator"]
    for _ in range(3):
        client.get("/frame")
    assert anim.frame_index == 3
    assert anim.current.horizontal_shift > 0


def test_upload_rejects_non_images(client):
    resp = client.post(
        "/upload",
        data={"file": (io.BytesIO(b"not an image"), "x.png")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_upload_without_file(client):
    resp = client.post("/upload", data={}, content_type="multipart/form-data")
    assert resp.status_code == 400


def test_settings_are_clamped(client):
    resp = client.post("/settings", json={"tileSize": 0, "pattern": "satin", "scatterIntensity": 500})
    assert resp.status_code == 200
    settings = resp.get_json()["settings"]
    assert settings["tileSize"] == 2
    assert settings["pattern"] == "satin"
    assert settings["scatterIntensity"] == 100
    assert client.get("/settings").get_json()["settings"] == settings


def test_settings_rejects_bad_values(client):
    resp = client.post("/settings", json={"pattern": "zigzag"})
    assert resp.status_code == 400
    assert "pattern" in resp.get_json()["error"]
    resp = client.post("/settings", json={"horizontalShift": "lots"})
    assert resp.status_code == 400
    resp = client.post("/settings", json=[1, 2, 3])
    assert resp.status_code == 400


def test_export_downloads_timestamped_png(client, gradient):
    upload(client, gradient)
    client.get("/frame")
    resp = client.get("/export")
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    disposition = resp.headers["Content-Disposition"]
    assert "attachment" in disposition
    assert "woven-mosaic-" in disposition
    assert Image.open(io.BytesIO(resp.data)).size == (90, 70)


def test_export_without_image(client):
    resp = client.get("/export")
    assert resp.status_code == 409
    assert resp.get_json()["success"] is False


def test_reset_stops_rendering(client, gradient):
    upload(client, gradient)
    client.post("/settings", json={"pattern": "basket"})
    resp = client.post("/reset")
    assert resp.get_json()["settings"]["pattern"] == "plain"
    assert client.get("/frame").status_code == 204


def test_generate_loads_synthetic_image(client):
    resp = client.post("/generate", json={"width": 64, "height": 48, "seed": 1})
    data = resp.get_json()
    assert data["success"] is True
    assert (data["width"], data["height"]) == (64, 48)
    frame = Image.open(io.BytesIO(client.get("/frame").data))
    assert frame.size == (64, 48)


def test_generate_rejects_huge_sizes(client):
    resp = client.post("/generate", json={"width": 100000, "height": 10})
    assert resp.status_code == 400


@pytest.mark.parametrize("body", ['{"seed": "inf"}', '{"seed": Infinity}', '{"seed": 1e400}'])
def test_settings_rejects_unbounded_seed(client, body):
    resp = client.post("/settings", data=body, content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
    assert client.get("/settings").get_json()["settings"]["seed"] == 123


def test_generate_rejects_non_object_body(client):
    resp = client.post("/generate", json=[1, 2])
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "expected a JSON object"


def test_generate_rejects_infinite_width(client):
    resp = client.post("/generate", data='{"width": Infinity}', content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_index_has_grid_presets(client):
    body = client.get("/").get_data(as_text=True)
    for division in (2, 4, 8, 16, 32):
        assert f'data-division="{division}"' in body
    assert 'id="gridReadout"' in body


def test_upload_reports_grid(client, gradient):
    data = upload(client, gradient).get_json()
    # tile 7 on 90x70
    assert data["grid"] == [13, 10]


def test_grid_preset_sets_tile_size(app, client, gradient):
    upload(client, gradient)
    resp = client.post("/grid", json={"division": 4})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["settings"]["tileSize"] == 17
    assert data["grid"] == [5, 4]
    assert app.extensions["weavinator"].target.tile_size == 17
    assert client.get("/settings").get_json()["grid"] == [5, 4]


def test_grid_preset_floors_at_minimum_tile(client, gradient):
    upload(client, gradient)
    assert client.post("/grid", json={"division": 64}).get_json()["settings"]["tileSize"] == 2


def test_grid_preset_needs_an_image(client):
    resp = client.post("/grid", json={"division": 8})
    assert resp.status_code == 409


@pytest.mark.parametrize("payload", [{"division": 0}, {"division": "many"}, {}, [8]])
def test_grid_preset_rejects_bad_division(client, gradient, payload):
    upload(client, gradient)
    resp = client.post("/grid", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_settings_posts_merge_onto_latest_target(client):
    client.post("/settings", json={"pattern": "twill"})
    client.post("/settings", json={"seed": 7})
    settings = client.get("/settings").get_json()["settings"]
    assert (settings["pattern"], settings["seed"]) == ("twill", 7)
