import asyncio
import time

import matplotlib.pyplot as plt
import pytest

from trackheat.providers.location import LocationFix
from trackheat.providers.permission import StaticPermissionProvider
from trackheat.providers.simulator import SimulatedLocationProvider
from trackheat.rendering.gradient import Rgba
from trackheat.rendering.heatmap import (
    CURRENT_LOCATION_RADIUS_M,
    TRACK_RADIUS_M,
    WORLD_RADIUS_M,
    HeatmapRenderer,
    build_overlay,
    plot_overlay,
)
from trackheat.tracking.controller import TrackingController


def test_empty_overlay_falls_back_to_world_view():
    overlay = build_overlay([])
    assert overlay.is_empty
    assert (overlay.region.latitude, overlay.region.longitude) == (0.0, 0.0)
    assert overlay.region.radius_m == WORLD_RADIUS_M


def test_empty_overlay_centers_on_current_location():
    overlay = build_overlay([], current=LocationFix(27.7, 85.3))
    assert (overlay.region.latitude, overlay.region.longitude) == (27.7, 85.3)
    assert overlay.region.radius_m == CURRENT_LOCATION_RADIUS_M


def test_overlay_pins_and_region(three_samples):
    overlay = build_overlay(three_samples)

    assert [p.label for p in overlay.pins] == ["Point 1", "Point 2", "Point 3"]
    assert overlay.pins[0].address == "2024-01-01 12:00"
    assert overlay.region.latitude == pytest.approx(10.1)
    assert overlay.region.longitude == pytest.approx(20.1)
    assert overlay.region.radius_m == TRACK_RADIUS_M


def test_overlay_circles_follow_gradient(three_samples):
    circles = build_overlay(three_samples).circles

    assert [c.stroke for c in circles] == [
        Rgba(0, 100, 255, 0.6),
        Rgba(255, 255, 0, 0.6),
        Rgba(255, 0, 0, 0.6),
    ]
    assert [c.fill.a for c in circles] == [0.3, 0.3, 0.3]
    assert all(c.radius_m == 50.0 and c.stroke_width == 2.0 for c in circles)


def test_plot_overlay_draws_one_patch_per_circle(three_samples):
    fig, ax = plt.subplots()
    try:
        returned = plot_overlay(build_overlay(three_samples), ax=ax)
        assert returned is ax
        assert len(ax.patches) == 3
        assert ax.get_title() == "Location heat map (3 points)"
    finally:
        plt.close(fig)


def test_plot_empty_overlay():
    ax = plot_overlay(build_overlay([]))
    assert len(ax.patches) == 0
    plt.close(ax.figure)


def make_controller(store, provider=None):
    return TrackingController(
        store, provider or SimulatedLocationProvider(seed=1), StaticPermissionProvider(), interval=0.01
    )


def test_renderer_redraws_on_update(tmp_path, store, three_samples):
    async def _test():
        controller = make_controller(store)
        out = tmp_path / "maps" / "heatmap.png"
        renderer = HeatmapRenderer(controller, out)

        await controller.add_samples(three_samples)
        await renderer.wait()

        assert out.exists()
        assert renderer.renders == 1

        await renderer.aclose()
        await controller.clear()
        await renderer.wait()
        assert renderer.renders == 1

    asyncio.run(_test())


class SlowRenderer(HeatmapRenderer):
    """Stands in for a redraw that takes a while, like one fetching map tiles."""

    def render(self, samples, current=None):
        time.sleep(0.3)
        self.renders += 1
        return self.output_path


def test_renderer_coalesces_updates_during_a_redraw(tmp_path, store, three_samples):
    async def _test():
        controller = make_controller(store)
        renderer = SlowRenderer(controller, tmp_path / "heatmap.png")

        for sample in three_samples:
            await controller.add_samples([sample])
        await renderer.wait()
        await renderer.aclose()

        assert renderer.renders == 2

    asyncio.run(_test())


def test_redraw_does_not_block_the_event_loop(tmp_path, store):
    async def _test():
        controller = make_controller(store)
        renderer = SlowRenderer(controller, tmp_path / "heatmap.png")
        gaps = []

        async def ticker():
            last = time.monotonic()
            while True:
                await asyncio.sleep(0.005)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        ticks = asyncio.create_task(ticker())
        await controller.start()
        await asyncio.sleep(0.5)
        await controller.aclose()
        await renderer.aclose()
        ticks.cancel()

        assert renderer.renders >= 1
        assert max(gaps) < 0.2

    asyncio.run(_test())


def test_renderer_centers_empty_map_on_current_location(tmp_path, store, monkeypatch):
    async def _test():
        provider = SimulatedLocationProvider(start_lat=27.7, start_lon=85.3, seed=1)
        controller = make_controller(store, provider)
        renderer = HeatmapRenderer(controller, tmp_path / "heatmap.png", current_location=provider.position)
        drawn = []
        monkeypatch.setattr(
            "trackheat.rendering.heatmap.plot_overlay", lambda overlay, ax=None, basemap=False: drawn.append(overlay)
        )

        await controller.reload()
        await renderer.wait()
        await renderer.aclose()

        assert drawn[0].is_empty
        assert (drawn[0].region.latitude, drawn[0].region.longitude) == (27.7, 85.3)
        assert drawn[0].region.radius_m == CURRENT_LOCATION_RADIUS_M
        assert provider.requests == 0

    asyncio.run(_test())


def test_renderer_without_current_location_shows_world(tmp_path, store, monkeypatch):
    async def _test():
        controller = make_controller(store)
        renderer = HeatmapRenderer(controller, tmp_path / "heatmap.png")
        drawn = []
        monkeypatch.setattr(
            "trackheat.rendering.heatmap.plot_overlay", lambda overlay, ax=None, basemap=False: drawn.append(overlay)
        )

        await controller.reload()
        await renderer.aclose()

        assert drawn[0].region.radius_m == WORLD_RADIUS_M

    asyncio.run(_test())
