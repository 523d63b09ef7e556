"""Single-flight cache for weekly NFL stat tables shared by every league refresh."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future
from typing import Any, Callable, Dict, Optional, Tuple

from .cache import LocalCache
from .errors import DecodingFailure

StatVector = Dict[str, float]
StatTable = Dict[str, StatVector]
StatFetcher = Callable[[int, str], Any]

logger = logging.getLogger(__name__)


def decode_stat_table(payload: Any) -> StatTable:
    """Convert a raw ``{player_id: {stat: value}}`` document into float vectors.

    Non-numeric stat values are ignored. Players with a ``null`` entry are
    skipped; any other non-object entry is a shape mismatch.
    """
    if not isinstance(payload, dict):
        raise DecodingFailure(f"Stat table must be an object, got {type(payload).__name__}.")

    table: StatTable = {}
    for player_id, raw_stats in payload.items():
        if raw_stats is None:
            continue
        if not isinstance(raw_stats, dict):
            raise DecodingFailure(f"Stats for player {player_id} must be an object.")
        vector: StatVector = {}
        for stat_key, value in raw_stats.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            vector[str(stat_key)] = float(value)
        table[str(player_id)] = vector
    return table


class SharedStatCache:
    """Cache raw weekly stat tables keyed by ``(week, season)``.

    Concurrent requests for a key that is being fetched attach to the running
    fetch instead of issuing another upstream call. Failures reach every
    waiter and are never cached. A forced refresh or ``invalidate`` cancels
    the in-flight fetch for that key only; its waiters re-attach to whatever
    fetch runs next.
    """

    def __init__(self, fetcher: StatFetcher, secondary_store: Optional[LocalCache] = None) -> None:
        self._fetcher = fetcher
        self._secondary_store = secondary_store
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[int, str], StatTable] = {}
        self._in_flight: Dict[Tuple[int, str], Future] = {}

    def get(self, week: int, season: str, *, force_refresh: bool = False) -> StatTable:
        """Return the stat table for a week, fetching it at most once at a time."""
        key = self._key(week, season)
        if force_refresh:
            self.invalidate(week, season)

        while True:
            with self._lock:
                table = self._entries.get(key)
                if table is not None:
                    logger.debug("Stat cache hit for week %s season %s", week, season)
                    return table
                future = self._in_flight.get(key)
                is_owner = future is None
                if is_owner:
                    future = Future()
                    self._in_flight[key] = future

            if is_owner:
                table = self._fetch(key, future)
                if table is not None:
                    return table
                continue

            logger.debug("Attaching to in-flight stat fetch for week %s season %s", week, season)
            try:
                return future.result()
            except CancelledError:
                logger.debug("In-flight stat fetch for week %s season %s was cancelled", week, season)

    def invalidate(self, week: int, season: str) -> None:
        """Evict a key and cancel its in-flight fetch without starting a new one."""
        key = self._key(week, season)
        with self._lock:
            self._evict(key)
        self._discard_secondary(key)

    def handle_week_change(self, week: int, season: str, *, preload: bool = False) -> Optional[StatTable]:
        """Drop every entry that is not the new ``(week, season)``; optionally load it."""
        current = self._key(week, season)
        with self._lock:
            stale = [key for key in set(self._entries) | set(self._in_flight) if key != current]
            for key in stale:
                self._evict(key)
        for key in stale:
            self._discard_secondary(key)
        if stale:
            logger.info("Week change to %s/%s evicted %d stat table(s)", week, season, len(stale))
        if preload:
            return self.get(week, season)
        return None

    def cached(self, week: int, season: str) -> Optional[StatTable]:
        """Return the cached table without triggering a fetch."""
        with self._lock:
            return self._entries.get(self._key(week, season))

    def player_stats(self, player_id: str, week: int, season: str) -> Optional[StatVector]:
        """Return one player's cached stats without triggering a fetch."""
        table = self.cached(week, season)
        if table is None:
            return None
        return table.get(str(player_id))

    def is_fetching(self, week: int, season: str) -> bool:
        with self._lock:
            return self._key(week, season) in self._in_flight

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------

    @staticmethod
    def _key(week: int, season: str) -> Tuple[int, str]:
        return int(week), str(season)

    def _evict(self, key: Tuple[int, str]) -> None:
        # Caller holds the lock. The future is never marked running, so cancel() succeeds.
        self._entries.pop(key, None)
        future = self._in_flight.pop(key, None)
        if future is not None:
            future.cancel()

    def _fetch(self, key: Tuple[int, str], future: Future) -> Optional[StatTable]:
        """Run the upstream fetch for ``key``; ``None`` means it was cancelled meanwhile."""
        week, season = key
        logger.info("Fetching stats for week %s season %s", week, season)
        try:
            table = decode_stat_table(self._fetcher(week, season))
        except Exception as exc:
            with self._lock:
                if self._in_flight.get(key) is future:
                    del self._in_flight[key]
                cancelled = future.cancelled()
                if not cancelled:
                    future.set_exception(exc)
            if cancelled:
                return None
            raise

        with self._lock:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]
            cancelled = future.cancelled()
            if not cancelled:
                self._entries[key] = table
                future.set_result(table)
        if cancelled:
            logger.debug("Discarding stale stats for week %s season %s", week, season)
            return None

        logger.info("Cached stats for %d players (week %s season %s)", len(table), week, season)
        self._write_through(key, table)
        return table

    def _write_through(self, key: Tuple[int, str], table: StatTable) -> None:
        if self._secondary_store is None:
            return
        week, season = key
        try:
            self._secondary_store.save(self._secondary_key(key), table)
        except Exception as exc:  # best effort
            logger.warning("Could not write stats for week %s season %s to secondary store: %s", week, season, exc)

    def _discard_secondary(self, key: Tuple[int, str]) -> None:
        if self._secondary_store is None:
            return
        try:
            self._secondary_store.discard(self._secondary_key(key))
        except OSError as exc:
            logger.warning("Could not remove %s from secondary store: %s", self._secondary_key(key), exc)

    @staticmethod
    def _secondary_key(key: Tuple[int, str]) -> str:
        week, season = key
        return f"weekly_stats_{season}_{week}"
