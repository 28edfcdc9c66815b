import abc
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from trackheat.errors import ProviderTimeout

logger = logging.getLogger(__name__)


class Accuracy(Enum):
    """Best-effort accuracy hint passed to providers."""
    LOWEST = "lowest"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    BEST = "best"


@dataclass(frozen=True)
class LocationFix:
    """
    A raw position reported by a provider, before it is stamped and stored.
    """
    latitude: float
    longitude: float
    accuracy: float | None = None


class LocationProvider(abc.ABC):
    """Abstract base class for location sources."""

    @abc.abstractmethod
    async def get_current_sample(self, timeout: float, accuracy: Accuracy) -> LocationFix | None:
        """
        Requests a fresh position.

        Returns None when no fix is available this time. Raises a
        ProviderError subclass when the provider fails.
        """
        pass

    async def get_last_known(self) -> LocationFix | None:
        """Cached position, if the provider keeps one."""
        return None


async def fetch_fix(
    provider: LocationProvider,
    timeout: float = 10.0,
    accuracy: Accuracy = Accuracy.BEST,
) -> LocationFix | None:
    """
    Returns the provider's last known position when it has one, otherwise
    requests a current fix. The whole lookup is bounded by `timeout` seconds.

    Raises:
        ProviderTimeout: If no answer arrives in time.
        ProviderError: Whatever the provider itself raises.
    """
    try:
        fix = await asyncio.wait_for(_lookup(provider, timeout, accuracy), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ProviderTimeout(f"No location fix within {timeout:g} seconds") from e

    if fix is None:
        logger.debug("Provider returned no current location")
    return fix


async def _lookup(provider: LocationProvider, timeout: float, accuracy: Accuracy) -> LocationFix | None:
    last = await provider.get_last_known()
    if last is not None:
        logger.debug("Using last known location %.4f, %.4f", last.latitude, last.longitude)
        return last
    return await provider.get_current_sample(timeout, accuracy)