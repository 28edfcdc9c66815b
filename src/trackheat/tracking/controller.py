import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from trackheat.config import Settings
from trackheat.core.sample import LocationSample
from trackheat.core.store import LocationStore
from trackheat.errors import ProviderError, StoreError, TrackingStateError
from trackheat.providers.location import Accuracy, LocationProvider, fetch_fix
from trackheat.providers.permission import PermissionProvider, ensure_permission

logger = logging.getLogger(__name__)


class TrackingState(Enum):
    IDLE = "idle"
    TRACKING = "tracking"


class StatusKind(Enum):
    INFO = "info"
    PERMISSION_DENIED = "permission_denied"
    PROVIDER_ERROR = "provider_error"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class TrackingStatus:
    kind: StatusKind
    message: str


class Subscription:
    """Handle returned by subscribe(); cancel() removes the callback."""

    def __init__(self, observers: list, callback: Callable):
        self._observers = observers
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._callback in self._observers

    def cancel(self) -> None:
        if self._callback in self._observers:
            self._observers.remove(self._callback)


class TrackingController:
    """
    Runs a tracking session: polls a location provider at a fixed interval,
    persists every fix and tells observers that the sample set changed.

    The session is a two-state machine (IDLE, TRACKING). start() spawns the
    poll loop as a task and returns immediately; stop() only raises the
    cancellation signal. The owner keeps the loop's lifetime explicit by
    awaiting join() (or aclose()) once it is done with the controller.
    """

    def __init__(
        self,
        store: LocationStore,
        location_provider: LocationProvider,
        permission_provider: PermissionProvider,
        *,
        interval: float = 5.0,
        timeout: float = 10.0,
        accuracy: Accuracy = Accuracy.BEST,
    ):
        """
        Args:
            store: Where samples are persisted.
            location_provider: Source of position fixes.
            permission_provider: Grants or denies access to the location.
            interval: Seconds to wait between two polls.
            timeout: Upper bound in seconds for a single location request.
            accuracy: Accuracy hint forwarded to the provider.
        """
        self.store = store
        self.location_provider = location_provider
        self.permission_provider = permission_provider
        self.interval = interval
        self.timeout = timeout
        self.accuracy = accuracy

        self._state = TrackingState.IDLE
        self._status = TrackingStatus(StatusKind.INFO, "Ready to track")
        self._samples: list[LocationSample] = []
        self._cancel: asyncio.Event | None = None
        self._tasks: set[asyncio.Task] = set()
        # Serializes store writes with the cache update that follows them.
        self._lock = asyncio.Lock()

        self._observers: list[Callable[[], None]] = []
        self._status_observers: list[Callable[[TrackingStatus], None]] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: LocationStore,
        location_provider: LocationProvider,
        permission_provider: PermissionProvider,
    ) -> "TrackingController":
        return cls(
            store,
            location_provider,
            permission_provider,
            interval=settings.poll_interval,
            timeout=settings.provider_timeout,
            accuracy=settings.accuracy,
        )

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state is TrackingState.TRACKING

    @property
    def samples(self) -> tuple[LocationSample, ...]:
        return tuple(self._samples)

    @property
    def status(self) -> TrackingStatus:
        return self._status

    @property
    def button_text(self) -> str:
        return "Stop Tracking" if self.is_tracking else "Start Tracking"

    # Observers

    def subscribe(self, callback: Callable[[], None]) -> Subscription:
        """Registers a no-argument callback fired after every change to the samples."""
        self._observers.append(callback)
        return Subscription(self._observers, callback)

    def subscribe_status(self, callback: Callable[[TrackingStatus], None]) -> Subscription:
        self._status_observers.append(callback)
        return Subscription(self._status_observers, callback)

    def _notify(self) -> None:
        for callback in list(self._observers):
            try:
                callback()
            except Exception:
                logger.exception("Observer %r failed on update", callback)

    def _set_status(self, kind: StatusKind, message: str) -> None:
        self._status = TrackingStatus(kind, message)
        for callback in list(self._status_observers):
            try:
                callback(self._status)
            except Exception:
                logger.exception("Status observer %r failed", callback)

    # Session lifecycle

    async def start(self) -> bool:
        """
        Starts tracking if the location permission is granted.

        Returns:
            True when the poll loop was started, False when permission was denied.

        Raises:
            TrackingStateError: If tracking is already running.
        """
        if self.is_tracking:
            raise TrackingStateError("Tracking is already running")

        if not await ensure_permission(self.permission_provider):
            logger.warning("Location permission denied, tracking not started")
            self._set_status(StatusKind.PERMISSION_DENIED, "Location permission denied")
            return False

        # Another caller may have started the session while the permission was pending.
        if self.is_tracking:
            raise TrackingStateError("Tracking is already running")

        self._cancel = asyncio.Event()
        self._state = TrackingState.TRACKING
        self._set_status(StatusKind.INFO, "Tracking started...")

        task = asyncio.create_task(self._poll_loop(self._cancel), name="trackheat-poll-loop")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info("Tracking started (interval %.1fs, timeout %.1fs)", self.interval, self.timeout)
        return True

    def stop(self) -> None:
        """
        Requests the poll loop to end. A tick already in flight still completes.

        Raises:
            TrackingStateError: If tracking is not running.
        """
        if not self.is_tracking:
            raise TrackingStateError("Tracking is not running")

        self._cancel.set()
        self._state = TrackingState.IDLE
        self._set_status(StatusKind.INFO, f"Tracking stopped. {len(self._samples)} locations saved.")
        logger.info("Tracking stop requested")

    async def toggle(self) -> bool:
        """Stops a running session or starts a new one. Returns is_tracking afterwards."""
        if self.is_tracking:
            self.stop()
        else:
            await self.start()
        return self.is_tracking

    async def join(self) -> None:
        """Waits until every poll loop started by this controller has ended."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        if self.is_tracking:
            self.stop()
        await self.join()

    # Sample set operations

    async def clear(self) -> int:
        """Removes every stored sample. The tracking state is left untouched."""
        async with self._lock:
            removed = await asyncio.to_thread(self.store.clear)
            self._samples.clear()

        self._set_status(StatusKind.INFO, "All locations cleared")
        self._notify()
        return removed

    async def reload(self) -> tuple[LocationSample, ...]:
        """Replaces the cached samples with what the store holds."""
        async with self._lock:
            self._samples = await asyncio.to_thread(self.store.all)

        self._set_status(StatusKind.INFO, f"Loaded {len(self._samples)} locations")
        self._notify()
        return self.samples

    async def add_samples(self, samples: Iterable[LocationSample]) -> list[LocationSample]:
        """
        Persists samples built outside the poll loop (e.g. a demo path) and
        notifies observers once.
        """
        added = []
        async with self._lock:
            for sample in samples:
                sample_id = await asyncio.to_thread(self.store.append, sample)
                stored = sample.with_id(sample_id)
                self._samples.append(stored)
                added.append(stored)

        self._set_status(StatusKind.INFO, f"Added {len(added)} locations")
        self._notify()
        return added

    # Poll loop

    async def _poll_loop(self, cancel: asyncio.Event) -> None:
        logger.info("Tracking loop started")
        ticks = 0

        try:
            while not cancel.is_set():
                ticks += 1
                await self._tick()

                try:
                    await asyncio.wait_for(cancel.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            logger.info("Tracking loop stopped after %d ticks", ticks)

    async def _tick(self) -> None:
        try:
            fix = await fetch_fix(self.location_provider, self.timeout, self.accuracy)
        except ProviderError as e:
            logger.warning("Location request failed: %s", e)
            self._set_status(StatusKind.PROVIDER_ERROR, f"Error: {e}")
            return
        except Exception as e:
            logger.warning("Location provider raised unexpectedly: %s", e, exc_info=True)
            self._set_status(StatusKind.PROVIDER_ERROR, f"Error: {e}")
            return

        if fix is None:
            return

        # Some providers report a negative accuracy when they do not know it.
        accuracy = fix.accuracy if fix.accuracy is not None and fix.accuracy >= 0 else None
        sample = LocationSample.now(fix.latitude, fix.longitude, accuracy)
        try:
            async with self._lock:
                sample_id = await asyncio.to_thread(self.store.append, sample)
                self._samples.append(sample.with_id(sample_id))
        except StoreError as e:
            logger.error("Could not save location, skipping this tick: %s", e, exc_info=True)
            self._set_status(StatusKind.STORE_ERROR, f"Error: {e}")
            return

        self._set_status(StatusKind.INFO, f"Captured: {fix.latitude:.4f}, {fix.longitude:.4f}")
        self._notify()
