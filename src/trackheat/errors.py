class TrackheatError(Exception):
    """Base class for every error raised by trackheat."""


class StoreError(TrackheatError):
    """A location store operation failed."""


class TrackingStateError(TrackheatError):
    """An operation was requested from a state that does not allow it."""


class ProviderError(TrackheatError):
    """The location provider could not produce a fix."""


class ProviderUnavailable(ProviderError):
    """Location services are not supported on this device."""


class ProviderDisabled(ProviderError):
    """Location services are switched off."""


class ProviderPermissionDenied(ProviderError):
    """The location permission was revoked or never granted."""


class ProviderTimeout(ProviderError):
    """No fix arrived within the requested timeout."""
