"""Command-line interface for trackheat.

Run:
    python -m trackheat demo
    python -m trackheat track --duration 60 --render
    python -m trackheat render --out heatmap.png
"""

import argparse
import asyncio
import logging
from pathlib import Path

import matplotlib.pyplot as plt

from trackheat.config import Settings, get_settings
from trackheat.core.store import LocationStore
from trackheat.demo import DEFAULT_LAT, DEFAULT_LON, demo_walk
from trackheat.errors import TrackheatError
from trackheat.providers.location import LocationFix, LocationProvider
from trackheat.providers.permission import StaticPermissionProvider
from trackheat.providers.replay import ReplayLocationProvider
from trackheat.providers.simulator import SimulatedLocationProvider
from trackheat.rendering.heatmap import HeatmapRenderer, build_overlay, plot_overlay
from trackheat.tracking.controller import TrackingController

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.db is not None:
        overrides["db_path"] = args.db
    return get_settings(**overrides)


def _provider(args: argparse.Namespace) -> LocationProvider:
    if getattr(args, "replay", None):
        return ReplayLocationProvider(args.replay, loop=True)
    return SimulatedLocationProvider(
        start_lat=getattr(args, "lat", DEFAULT_LAT),
        start_lon=getattr(args, "lon", DEFAULT_LON),
        seed=getattr(args, "seed", None),
    )


def _controller(settings: Settings, store: LocationStore, args: argparse.Namespace) -> TrackingController:
    provider = _provider(args)
    permission = StaticPermissionProvider(granted=not getattr(args, "deny", False))
    return TrackingController.from_settings(settings, store, provider, permission)


async def _run_tracking(settings: Settings, args: argparse.Namespace) -> int:
    with LocationStore(settings.db_path) as store:
        controller = _controller(settings, store, args)
        controller.subscribe_status(lambda status: print(status.message))
        renderer = None
        if args.render:
            provider = controller.location_provider
            renderer = HeatmapRenderer(
                controller,
                args.out or settings.render_path,
                basemap=args.basemap,
                current_location=getattr(provider, "position", None),
            )

        try:
            await controller.reload()
            if not await controller.start():
                return 1

            if args.duration is not None:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            await controller.aclose()
            if renderer is not None:
                await renderer.aclose()

        logger.info("Session ended with %d stored locations", len(controller.samples))
        return 0


def _cmd_track(args: argparse.Namespace) -> int:
    settings = _settings(args)
    try:
        return asyncio.run(_run_tracking(settings, args))
    except KeyboardInterrupt:
        logger.info("Interrupted, tracking stopped")
        return 0


def _cmd_demo(args: argparse.Namespace) -> int:
    settings = _settings(args)

    async def seed() -> int:
        with LocationStore(settings.db_path) as store:
            controller = _controller(settings, store, args)
            added = await controller.add_samples(demo_walk(args.lat, args.lon))
        return len(added)

    count = asyncio.run(seed())
    print(f"Added {count} demo locations - realistic walking path!")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    settings = _settings(args)
    with LocationStore(settings.db_path) as store:
        samples = store.all()

    for s in samples:
        accuracy = "unknown" if s.accuracy is None else f"{s.accuracy:.1f} m"
        print(f"{s.id:>6}  {s.timestamp.isoformat(sep=' ', timespec='seconds')}  "
              f"{s.latitude:.6f}, {s.longitude:.6f}  ({accuracy})")
    print(f"{len(samples)} locations")
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    if not args.yes:
        answer = input("Delete all saved locations? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Nothing deleted")
            return 0

    settings = _settings(args)
    with LocationStore(settings.db_path) as store:
        removed = store.clear()
    print(f"All locations cleared ({removed} removed)")
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    settings = _settings(args)
    out = Path(args.out or settings.render_path)

    with LocationStore(settings.db_path) as store:
        samples = store.all()

    current = None
    if args.lat is not None and args.lon is not None:
        current = LocationFix(args.lat, args.lon)
    overlay = build_overlay(samples, current)

    out.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(10, 10))
    try:
        plot_overlay(overlay, ax=ax, basemap=args.basemap)
        fig.savefig(out, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)

    print(f"Heat map with {len(overlay.pins)} points saved to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="trackheat", description="Track locations and draw them as a heat map.")
    p.add_argument("--db", type=Path, default=None, help="SQLite database path (default from settings)")
    p.add_argument("--log-level", type=str, default=None, help="Logging level, e.g. DEBUG")

    sub = p.add_subparsers(dest="cmd", required=True)

    p_track = sub.add_parser("track", help="Record locations until stopped")
    p_track.add_argument("--duration", type=float, default=None, help="Seconds to track (default: until Ctrl-C)")
    p_track.add_argument("--replay", type=Path, default=None, help="Replay fixes from a CSV instead of simulating")
    p_track.add_argument("--lat", type=float, default=DEFAULT_LAT, help="Start latitude of the simulated walk")
    p_track.add_argument("--lon", type=float, default=DEFAULT_LON, help="Start longitude of the simulated walk")
    p_track.add_argument("--seed", type=int, default=None, help="Random seed of the simulated walk")
    p_track.add_argument("--deny", action="store_true", help="Act as if the location permission was refused")
    p_track.add_argument("--render", action="store_true", help="Redraw the heat map after every update")
    p_track.add_argument("--out", type=Path, default=None, help="Heat map PNG path")
    p_track.add_argument("--basemap", action="store_true", help="Draw map tiles under the heat map")
    p_track.set_defaults(func=_cmd_track)

    p_demo = sub.add_parser("demo", help="Add a simulated 20 point walking path")
    p_demo.add_argument("--lat", type=float, default=DEFAULT_LAT)
    p_demo.add_argument("--lon", type=float, default=DEFAULT_LON)
    p_demo.set_defaults(func=_cmd_demo)

    p_list = sub.add_parser("list", help="Print stored locations")
    p_list.set_defaults(func=_cmd_list)

    p_clear = sub.add_parser("clear", help="Delete all stored locations")
    p_clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    p_clear.set_defaults(func=_cmd_clear)

    p_render = sub.add_parser("render", help="Draw stored locations as a heat map PNG")
    p_render.add_argument("--out", type=Path, default=None, help="Output PNG path")
    p_render.add_argument("--basemap", action="store_true", help="Draw map tiles under the heat map")
    p_render.add_argument("--lat", type=float, default=None, help="Latitude to center on when nothing is stored")
    p_render.add_argument("--lon", type=float, default=None, help="Longitude to center on when nothing is stored")
    p_render.set_defaults(func=_cmd_render)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    try:
        return int(args.func(args))
    except TrackheatError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
