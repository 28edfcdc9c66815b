import asyncio
import logging
import threading
from pathlib import Path
from typing import Dict, Iterator

import pandas as pd

from trackheat.core.sample import validate_coordinates
from trackheat.errors import ProviderUnavailable
from trackheat.providers.location import Accuracy, LocationFix, LocationProvider

logger = logging.getLogger(__name__)


class ReplayLocationProvider(LocationProvider):
    """
    Replays a recorded trajectory from a CSV file, one row per request.
    Rows with missing or out-of-range coordinates are skipped.
    """

    def __init__(
        self,
        filepath: str | Path,
        sep: str = ',',
        col_mapping: Dict[str, str] | None = None,
        loop: bool = False,
        chunksize: int = 1000,
    ):
        """
        Args:
            filepath: CSV file with at least latitude and longitude columns.
            sep: Column separator.
            col_mapping: Maps 'latitude', 'longitude', 'accuracy' to the
                         file's column names.
            loop: Start again from the first row once the file is exhausted.
            chunksize: Rows read from disk at a time.
        """
        self.filepath = Path(filepath)
        if not self.filepath.exists():
            raise FileNotFoundError(f"File not found: {self.filepath}")

        self.sep = sep
        self.loop = loop
        self.chunksize = chunksize
        self.mapping = col_mapping or {
            'latitude': 'latitude',
            'longitude': 'longitude',
            'accuracy': 'accuracy',
        }

        header = pd.read_csv(self.filepath, nrows=0, sep=self.sep)
        missing = [self.mapping[c] for c in ('latitude', 'longitude') if self.mapping[c] not in header.columns]
        if missing:
            raise ValueError(f"CSV must contain 'latitude' and 'longitude' columns. Found: {list(header.columns)}")
        self._has_accuracy = self.mapping.get('accuracy') in header.columns

        self._rows = self.stream()
        # A timed-out request may still be reading when the next one starts.
        self._rows_lock = threading.Lock()

    def stream(self) -> Iterator[LocationFix]:
        """
        Yields fixes from the file one by one.
        """
        with pd.read_csv(self.filepath, chunksize=self.chunksize, sep=self.sep) as reader:
            for chunk in reader:
                for _, row in chunk.iterrows():
                    try:
                        lat = float(row[self.mapping['latitude']])
                        lon = float(row[self.mapping['longitude']])
                        validate_coordinates(lat, lon)
                    except (TypeError, ValueError) as e:
                        logger.debug("Skipping replay row: %s", e)
                        continue

                    accuracy = None
                    if self._has_accuracy:
                        value = pd.to_numeric(row[self.mapping['accuracy']], errors='coerce')
                        # Unknown accuracy is exported as blank or -1.
                        if not pd.isna(value) and value >= 0:
                            accuracy = float(value)

                    yield LocationFix(latitude=lat, longitude=lon, accuracy=accuracy)

    async def get_current_sample(self, timeout: float, accuracy: Accuracy) -> LocationFix | None:
        # pandas reads the next chunk from disk, keep that off the event loop.
        return await asyncio.to_thread(self._next_fix)

    def _next_fix(self) -> LocationFix:
        with self._rows_lock:
            fix = next(self._rows, None)
            if fix is None and self.loop:
                logger.info("Replay of %s finished, starting over", self.filepath.name)
                self._rows = self.stream()
                fix = next(self._rows, None)

        if fix is None:
            raise ProviderUnavailable(f"Replay file {self.filepath.name} is exhausted")
        return fix
