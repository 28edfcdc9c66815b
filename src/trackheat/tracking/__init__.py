from .controller import StatusKind, Subscription, TrackingController, TrackingState, TrackingStatus

__all__ = ["StatusKind", "Subscription", "TrackingController", "TrackingState", "TrackingStatus"]
