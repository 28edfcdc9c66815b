from .location import Accuracy, LocationFix, LocationProvider, fetch_fix
from .permission import PermissionProvider, PermissionStatus, StaticPermissionProvider, ensure_permission
from .replay import ReplayLocationProvider
from .simulator import SimulatedLocationProvider

__all__ = [
    "Accuracy",
    "LocationFix",
    "LocationProvider",
    "PermissionProvider",
    "PermissionStatus",
    "ReplayLocationProvider",
    "SimulatedLocationProvider",
    "StaticPermissionProvider",
    "ensure_permission",
    "fetch_fix",
]
