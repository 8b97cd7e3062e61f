"""Command line entry point.

Usage:
  python -m weavinator render input.jpg out.png --pattern twill --frames 60 --gif anim.gif
  python -m weavinator web --port 5000
  python -m weavinator desktop [input.jpg]
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.animator import WeaveAnimator
from .core.params import WeaveConfig, WeaveConfigError, WeavePattern, suggest_config
from .utils.export import export_gif, save_png
from .utils.image_ops import RasterError, load_raster
from .utils.log import setup_logging

logger = logging.getLogger("weavinator")


def _add_config_args(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("weave parameters (default: scaled to the image)")
    g.add_argument("--tile-size", type=float, dest="tile_size")
    g.add_argument("--horizontal-shift", type=float, dest="horizontal_shift")
    g.add_argument("--vertical-shift", type=float, dest="vertical_shift")
    g.add_argument("--scatter", type=float, dest="scatter_intensity", help="0..100, percent of tiles that jump")
    g.add_argument("--pattern", choices=[p.value for p in WeavePattern])
    g.add_argument("--seed", type=int)
    g.add_argument("--opacity", type=float)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="weavinator", description="Toroidal tile weaving of images.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    r = sub.add_parser("render", help="weave an image headlessly")
    r.add_argument("input")
    r.add_argument("output", help="PNG file (other suffixes become .png), or a directory for a timestamped name")
    r.add_argument("--frames", type=int, default=1, help="frames to ease in from the zero-effect state (1 renders the target directly)")
    r.add_argument("--rate", type=float, default=0.1, help="interpolation step per frame")
    r.add_argument("--gif", default=None, help="also write every frame to this GIF")
    r.add_argument("--fps", type=int, default=30)
    _add_config_args(r)

    w = sub.add_parser("web", help="run the browser front end")
    w.add_argument("--host", default="127.0.0.1")
    w.add_argument("--port", type=int, default=5000)
    w.add_argument("--no-browser", action="store_true")

    d = sub.add_parser("desktop", help="run the Qt preview window")
    d.add_argument("input", nargs="?")
    return parser


def config_from_args(args: argparse.Namespace, width: int, height: int) -> WeaveConfig:
    overrides = {
        k: getattr(args, k)
        for k in (
            "tile_size",
            "horizontal_shift",
            "vertical_shift",
            "scatter_intensity",
            "pattern",
            "seed",
            "opacity",
        )
    }
    return WeaveConfig.from_mapping(overrides, base=suggest_config(width, height))


def cmd_render(args: argparse.Namespace) -> int:
    raster = load_raster(args.input)
    h, w = raster.shape[:2]
    cfg = config_from_args(args, w, h)
    anim = WeaveAnimator(cfg, rate=1.0 if args.frames <= 1 else args.rate)
    anim.load(raster)
    frames = anim.record(max(1, args.frames))

    out = Path(args.output)
    if out.is_dir() or not out.suffix:
        path = save_png(frames[-1], out)
    else:
        if out.suffix.lower() != ".png":
            logger.warning("only PNG output is supported, writing %s", out.with_suffix(".png").name)
            out = out.with_suffix(".png")
        path = save_png(frames[-1], out.parent, out.name)
    if args.gif:
        export_gif(frames, args.gif, fps=args.fps)
    logger.info("rendered %d frame(s) with %s -> %s", len(frames), anim.current.to_dict(), path)
    return 0


def cmd_web(args: argparse.Namespace) -> int:
    from .app.web import run

    run(host=args.host, port=args.port, browser=not args.no_browser)
    return 0


def cmd_desktop(args: argparse.Namespace) -> int:
    from .app.preview import main as preview_main

    return preview_main(args.input)


COMMANDS = {"render": cmd_render, "web": cmd_web, "desktop": cmd_desktop}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    try:
        return COMMANDS[args.command](args)
    except (RasterError, WeaveConfigError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
