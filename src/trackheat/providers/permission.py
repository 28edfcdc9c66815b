import abc
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class PermissionStatus(Enum):
    GRANTED = "granted"
    DENIED = "denied"


class PermissionProvider(abc.ABC):
    """Abstract source of the location permission."""

    @abc.abstractmethod
    async def check(self) -> PermissionStatus:
        """Returns the current status without prompting."""
        pass

    @abc.abstractmethod
    async def request(self) -> PermissionStatus:
        """Asks for the permission and returns the resulting status."""
        pass


class StaticPermissionProvider(PermissionProvider):
    """
    Answers every check and request with the same status.
    Used where there is no platform prompt to show (CLI, tests).
    """

    def __init__(self, granted: bool = True):
        self.status = PermissionStatus.GRANTED if granted else PermissionStatus.DENIED
        self.check_calls = 0
        self.request_calls = 0

    async def check(self) -> PermissionStatus:
        self.check_calls += 1
        return self.status

    async def request(self) -> PermissionStatus:
        self.request_calls += 1
        return self.status


async def ensure_permission(provider: PermissionProvider) -> bool:
    """
    Checks the permission and only requests it when it is not already granted.
    """
    status = await provider.check()
    if status != PermissionStatus.GRANTED:
        logger.info("Location permission not granted, requesting it")
        status = await provider.request()

    return status == PermissionStatus.GRANTED
