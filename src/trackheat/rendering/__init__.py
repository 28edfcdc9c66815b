from .gradient import Rgba, color_for, colors_for, normalized_time
from .heatmap import HeatmapRenderer, MapOverlay, MapRegion, build_overlay, plot_overlay

__all__ = [
    "HeatmapRenderer",
    "MapOverlay",
    "MapRegion",
    "Rgba",
    "build_overlay",
    "color_for",
    "colors_for",
    "normalized_time",
    "plot_overlay",
]
