from .core.sample import LocationSample
from .core.store import LocationStore
from .errors import TrackheatError
from .rendering.gradient import color_for
from .tracking.controller import TrackingController, TrackingState

__version__ = "0.1.0"

__all__ = ["LocationSample", "LocationStore", "TrackheatError", "TrackingController", "TrackingState", "color_for"]
