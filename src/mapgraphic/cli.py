"""CLI entrypoint for mapgraphic."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Sequence

from .config import AppConfig, load_config
from .graphic import Graphic, GraphicOutputs
from .resize import ResizeCoordinator
from .topology import TopologyError
from .util import ensure_directories, setup_logging
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("mapgraphic.cli")


def _resize_event(raw: str) -> tuple[int, int]:
    at_ms, sep, width = raw.partition(":")
    try:
        if not sep:
            raise ValueError(raw)
        event = (int(at_ms), int(width))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected MS:WIDTH, got '{raw}'") from exc
    if event[0] < 0 or event[1] < 0:
        raise argparse.ArgumentTypeError(f"Resize event values must be >= 0, got '{raw}'")
    return event


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapgraphic",
        description="Render a responsive textured map graphic into an HTML page.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    render_p = subparsers.add_parser("render", help="Load the geography data and render the page.")
    add_common(render_p)
    render_p.add_argument(
        "--width",
        action="append",
        type=int,
        default=[],
        help="Viewport width in px. Can be repeated; defaults to map.default_width.",
    )
    render_p.add_argument("--svg", type=Path, default=None, help="Also write a standalone SVG here.")
    render_p.add_argument("--png", type=Path, default=None, help="Also write a PNG here (needs cairosvg).")

    validate_p = subparsers.add_parser("validate", help="Validate config, geography data and map kind.")
    add_common(validate_p)
    validate_p.add_argument(
        "--strict",
        action="store_true",
        help="Treat unknown nudge and substitution ids as errors.",
    )

    replay_p = subparsers.add_parser(
        "replay-resize",
        help="Replay timed viewport resizes through the throttled resize handler.",
    )
    add_common(replay_p)
    replay_p.add_argument(
        "--event",
        action="append",
        type=_resize_event,
        default=[],
        metavar="MS:WIDTH",
        help="Resize to WIDTH at MS milliseconds after the first render. Can be repeated.",
    )

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    log_path = cfg.paths.logs_dir / "mapgraphic.log"
    setup_logging(log_path, verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _init_graphic(cfg: AppConfig, *, width: int | None = None) -> tuple[Graphic, ResizeCoordinator]:
    graphic = Graphic.from_config(cfg)
    coordinator = graphic.init(
        cfg.paths.geodata,
        timeout_s=cfg.fetch.request_timeout_s,
        user_agent=cfg.fetch.user_agent,
        width=width,
    )
    return graphic, coordinator


def _stylesheet_text(cfg: AppConfig) -> str | None:
    path = cfg.paths.stylesheet
    if path is None or not path.exists():
        return None
    return path.read_text(encoding="utf-8")


def _suffixed(path: Path | None, width: int, *, multiple: bool) -> Path | None:
    if path is None or not multiple:
        return path
    return path.with_name(f"{path.stem}-{width}{path.suffix}")


def _log_outputs(outputs: GraphicOutputs) -> None:
    for label, path in (("HTML", outputs.html), ("SVG", outputs.svg), ("PNG", outputs.png)):
        if path is not None:
            LOGGER.info("%s written to %s", label, path)
    for error in outputs.errors:
        LOGGER.error(error)


def _run_render(
    cfg: AppConfig,
    *,
    widths: Sequence[int],
    svg: Path | None,
    png: Path | None,
) -> int:
    requested = list(widths) or [cfg.map.default_width]
    multiple = len(requested) > 1
    svg_path = svg or cfg.paths.output_svg
    png_path = png or cfg.paths.output_png
    css = _stylesheet_text(cfg) if (svg_path or png_path) else None

    graphic, coordinator = _init_graphic(cfg, width=requested[0])
    coordinator.close()
    failed = False
    for idx, width in enumerate(requested):
        if idx > 0:
            graphic.render(width)
        effective = graphic.last_snapshot.width if graphic.last_snapshot else width
        outputs = graphic.write_outputs(
            html=_suffixed(cfg.paths.output_html, effective, multiple=multiple),
            svg=_suffixed(svg_path, effective, multiple=multiple),
            png=_suffixed(png_path, effective, multiple=multiple),
            css=css,
        )
        _log_outputs(outputs)
        failed = failed or not outputs.ok
    return 1 if failed else 0


def _run_validate(cfg: AppConfig, *, strict: bool) -> int:
    report = Validator(cfg).run(strict=strict)
    for line in format_report_lines(report):
        if line.startswith("[WARN]"):
            LOGGER.warning(line)
        elif line.startswith("[ERROR]"):
            LOGGER.error(line)
        else:
            LOGGER.info(line)
    return 0 if report.ok else 1


async def replay_resize_events(
    coordinator: ResizeCoordinator,
    events: Sequence[tuple[int, int]],
    *,
    poll_s: float = 0.01,
) -> int:
    """Feed (ms, width) events to the coordinator in time order and wait for the trailing render."""
    loop = asyncio.get_running_loop()
    start = loop.time()
    for at_ms, width in sorted(events):
        delay = at_ms / 1000.0 - (loop.time() - start)
        if delay > 0:
            await asyncio.sleep(delay)
        coordinator.on_resize(width)
    while coordinator.pending:
        await asyncio.sleep(poll_s)
    return coordinator.render_count


def _run_replay_resize(cfg: AppConfig, *, events: Sequence[tuple[int, int]]) -> int:
    if not events:
        LOGGER.error("replay-resize needs at least one --event MS:WIDTH")
        return 2
    graphic, coordinator = _init_graphic(cfg)
    try:
        renders = asyncio.run(replay_resize_events(coordinator, events))
    finally:
        coordinator.close()
    LOGGER.info(
        "Replayed %d resize events: %d throttled renders (final width %s)",
        len(events),
        renders,
        graphic.last_snapshot.width if graphic.last_snapshot else "n/a",
    )
    outputs = graphic.write_outputs(html=cfg.paths.output_html)
    _log_outputs(outputs)
    return 0 if outputs.ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "render":
        return _run_render(cfg, widths=[int(w) for w in args.width], svg=args.svg, png=args.png)
    if command == "validate":
        return _run_validate(cfg, strict=bool(args.strict))
    if command == "replay-resize":
        return _run_replay_resize(cfg, events=list(args.event))
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return _dispatch(args)
    except (FileNotFoundError, LookupError, ValueError) as exc:
        # TopologyError is a ValueError.
        kind = "Geography data error" if isinstance(exc, TopologyError) else "Failed"
        LOGGER.error("%s: %s", kind, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
