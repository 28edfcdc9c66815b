import asyncio
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Sequence

import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.patches import Circle as CirclePatch

from trackheat.core.sample import LocationSample, center_of
from trackheat.providers.location import LocationFix
from trackheat.rendering.gradient import Rgba, colors_for

if TYPE_CHECKING:
    from trackheat.tracking.controller import TrackingController

logger = logging.getLogger(__name__)

CIRCLE_RADIUS_M = 50.0
CIRCLE_STROKE_WIDTH = 2.0
TRACK_RADIUS_M = 1_000.0
CURRENT_LOCATION_RADIUS_M = 5_000.0
WORLD_RADIUS_M = 10_000_000.0

_METRES_PER_DEGREE = 111320.0


@dataclass(frozen=True)
class Pin:
    label: str
    address: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class HeatCircle:
    latitude: float
    longitude: float
    stroke: Rgba
    fill: Rgba
    radius_m: float = CIRCLE_RADIUS_M
    stroke_width: float = CIRCLE_STROKE_WIDTH


@dataclass(frozen=True)
class MapRegion:
    """The visible part of the map: a center and a radius in metres."""
    latitude: float
    longitude: float
    radius_m: float


@dataclass(frozen=True)
class MapOverlay:
    region: MapRegion
    pins: List[Pin] = field(default_factory=list)
    circles: List[HeatCircle] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.pins


def build_overlay(samples: Sequence[LocationSample], current: LocationFix | None = None) -> MapOverlay:
    """
    Derives everything the map shows from a sample set.

    Every sample gets a pin and a heat circle colored by recency, and the
    map is centered on the average position. Without samples the map
    centers on `current` when it is known, otherwise on a world view.
    """
    if not samples:
        if current is not None:
            region = MapRegion(current.latitude, current.longitude, CURRENT_LOCATION_RADIUS_M)
        else:
            region = MapRegion(0.0, 0.0, WORLD_RADIUS_M)
        return MapOverlay(region=region)

    pins = [
        Pin(
            label=f"Point {s.id}",
            address=s.timestamp.strftime("%Y-%m-%d %H:%M"),
            latitude=s.latitude,
            longitude=s.longitude,
        )
        for s in samples
    ]
    circles = [
        HeatCircle(latitude=s.latitude, longitude=s.longitude, stroke=stroke, fill=fill)
        for s, (stroke, fill) in zip(samples, colors_for(samples))
    ]
    lat, lon = center_of(samples)
    return MapOverlay(region=MapRegion(lat, lon, TRACK_RADIUS_M), pins=pins, circles=circles)


def _local_xy(lat: float, lon: float, region: MapRegion) -> tuple[float, float]:
    """Flat-earth projection in metres around the region center."""
    x = (lon - region.longitude) * _METRES_PER_DEGREE * math.cos(math.radians(region.latitude))
    y = (lat - region.latitude) * _METRES_PER_DEGREE
    return x, y


def plot_overlay(overlay: MapOverlay, ax=None, basemap: bool = False):
    """
    Draws the overlay with matplotlib.

    Args:
        overlay: Result of build_overlay().
        ax: Axes to draw into. A new figure is created when None.
        basemap: Project to Web Mercator and add map tiles underneath
                 (needs the optional geopandas/contextily dependencies).

    Returns:
        The axes drawn into.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 10))

    if basemap and not overlay.is_empty:
        _plot_on_basemap(overlay, ax)
    else:
        _plot_local(overlay, ax)

    ax.set_title(f"Location heat map ({len(overlay.pins)} points)")
    return ax


def _plot_local(overlay: MapOverlay, ax) -> None:
    region = overlay.region
    extent = region.radius_m

    for circle in overlay.circles:
        x, y = _local_xy(circle.latitude, circle.longitude, region)
        ax.add_patch(CirclePatch(
            (x, y),
            circle.radius_m,
            facecolor=circle.fill.to_mpl(),
            edgecolor=circle.stroke.to_mpl(),
            linewidth=circle.stroke_width,
        ))
        # Keep every circle in view even when the track is wider than the region.
        extent = max(extent, abs(x) + 2 * circle.radius_m, abs(y) + 2 * circle.radius_m)

    if overlay.pins:
        xy = [_local_xy(p.latitude, p.longitude, region) for p in overlay.pins]
        ax.scatter([x for x, _ in xy], [y for _, y in xy], s=8, color="black", zorder=5, label="Points")

    ax.set_xlim(-extent, extent)
    ax.set_ylim(-extent, extent)
    ax.set_aspect("equal")
    ax.set_xlabel("East (m)")
    ax.set_ylabel("North (m)")


def _plot_on_basemap(overlay: MapOverlay, ax) -> None:
    import contextily as ctx
    import geopandas as gpd
    from shapely.geometry import Point as ShapelyPoint

    gdf = gpd.GeoDataFrame(
        {"label": [p.label for p in overlay.pins]},
        geometry=[ShapelyPoint(p.longitude, p.latitude) for p in overlay.pins],
        crs="EPSG:4326",
    )
    gdf_web = gdf.to_crs(epsg=3857)

    for circle, geom in zip(overlay.circles, gdf_web.geometry):
        # Web Mercator stretches distances by 1/cos(lat).
        radius = circle.radius_m / math.cos(math.radians(circle.latitude))
        ax.add_patch(CirclePatch(
            (geom.x, geom.y),
            radius,
            facecolor=circle.fill.to_mpl(),
            edgecolor=circle.stroke.to_mpl(),
            linewidth=circle.stroke_width,
        ))

    gdf_web.plot(ax=ax, color="black", markersize=8, zorder=5)
    ctx.add_basemap(ax, source=ctx.providers.CartoDB.Positron)
    ax.set_axis_off()


class HeatmapRenderer:
    """
    Observer that redraws the heat map into a PNG file whenever the
    controller reports a change to the sample set.

    Drawing happens in a worker thread so the poll loop keeps running.
    Updates that arrive while a redraw is in progress are folded into a
    single follow-up redraw.
    """

    def __init__(
        self,
        controller: "TrackingController",
        output_path: str | Path,
        basemap: bool = False,
        current_location: Callable[[], LocationFix | None] | None = None,
    ):
        """
        Args:
            controller: Controller whose samples are drawn.
            output_path: PNG file rewritten on every redraw.
            basemap: Draw map tiles underneath (optional `map` extra).
            current_location: Returns the device position used to center
                              the map while there are no samples.
        """
        self.controller = controller
        self.output_path = Path(output_path)
        self.basemap = basemap
        self.current_location = current_location
        self.renders = 0
        self._pending = False
        self._task: asyncio.Task | None = None
        self._subscription = controller.subscribe(self.request_render)

    def request_render(self) -> None:
        self._pending = True
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._render_pending())

    async def _render_pending(self) -> None:
        while self._pending:
            self._pending = False
            samples = self.controller.samples
            current = self.current_location() if not samples and self.current_location else None
            try:
                await asyncio.to_thread(self.render, samples, current)
            except Exception:
                logger.exception("Heat map redraw to %s failed", self.output_path)

    def render(self, samples: Sequence[LocationSample], current: LocationFix | None = None) -> Path:
        """Draws `samples` and writes the PNG. Blocking."""
        overlay = build_overlay(samples, current)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        # pyplot keeps global state; a bare Figure is safe off the main thread.
        fig = Figure(figsize=(10, 10))
        ax = fig.add_subplot()
        plot_overlay(overlay, ax=ax, basemap=self.basemap)
        fig.savefig(self.output_path, dpi=150, bbox_inches="tight")

        self.renders += 1
        logger.debug("Rendered %d points to %s", len(overlay.pins), self.output_path)
        return self.output_path

    async def wait(self) -> None:
        """Waits until no redraw is scheduled or running."""
        while self._task is not None and not self._task.done():
            await self._task

    async def aclose(self) -> None:
        self._subscription.cancel()
        await self.wait()
