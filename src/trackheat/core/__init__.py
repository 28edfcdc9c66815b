from .sample import LocationSample, center_of, time_bounds, validate_coordinates
from .store import LocationStore

__all__ = ["LocationSample", "LocationStore", "center_of", "time_bounds", "validate_coordinates"]
