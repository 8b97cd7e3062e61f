"""Front ends: Flask web app (web) and Qt desktop preview (preview)."""
