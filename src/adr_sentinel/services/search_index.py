"""
In-memory search index over the medicine catalog.

An IndexSnapshot is built from every MedicineRecord at one point in time and
never modified afterwards. SearchIndex owns the current snapshot and replaces
it wholesale on rebuild:

  - first query with no snapshot   → build on demand and wait for it
  - snapshot older than the TTL    → rebuild in the background, keep serving
                                     the current snapshot meanwhile
  - force_refresh()                → rebuild now and wait for the swap

Concurrent rebuild requests share a single in-flight task.
"""

import asyncio
import logging
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from rapidfuzz import fuzz

from adr_sentinel.constants import (
    FIELD_WEIGHTS,
    INDEX_MAX_CANDIDATES,
    INDEX_TTL_SECONDS,
    MIN_INDEXED_TOKEN_LENGTH,
    PREFIX_TOKEN_SCORE,
)
from adr_sentinel.data_sources.record_store import RecordStore
from adr_sentinel.exceptions import IndexNotReady, RecordStoreUnavailable
from adr_sentinel.models.model_matching import IndexStats
from adr_sentinel.models.model_medicine import MedicineRecord
from adr_sentinel.services.similarity import normalize_text

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\w+")

# Fuzzy token agreement only counts above the cutoff, and always ranks below
# an exact or prefix token hit.
FUZZY_TOKEN_CUTOFF = 0.75
FUZZY_TOKEN_SCALE = 0.6


def tokenize(text: str | None) -> list[str]:
    """Lower-cased word tokens of text (hyphenated words split)."""
    return _TOKEN.findall(normalize_text(text))


def _token_score(query_token: str, field_tokens: frozenset[str]) -> float:
    if query_token in field_tokens:
        return 1.0
    best = 0.0
    for token in field_tokens:
        if len(query_token) >= MIN_INDEXED_TOKEN_LENGTH and token.startswith(query_token):
            return PREFIX_TOKEN_SCORE
        ratio = fuzz.ratio(query_token, token) / 100.0
        if ratio >= FUZZY_TOKEN_CUTOFF:
            best = max(best, ratio * FUZZY_TOKEN_SCALE)
    return best


@dataclass(frozen=True)
class IndexEntry:
    """A record plus the pre-normalized text the matcher compares against."""

    record: MedicineRecord
    normalized_name: str
    normalized_generic: str
    field_tokens: dict[str, frozenset[str]]

    @classmethod
    def from_record(cls, record: MedicineRecord) -> "IndexEntry":
        fields = {
            "name": tokenize(record.name),
            "generic_name": tokenize(record.generic_name),
            "manufacturer_name": tokenize(record.manufacturer_name),
            "category": tokenize(record.category),
            "indications": [t for text in record.indications for t in tokenize(text)],
        }
        return cls(
            record=record,
            normalized_name=normalize_text(record.name),
            normalized_generic=normalize_text(record.generic_name),
            field_tokens={k: frozenset(v) for k, v in fields.items()},
        )

    def coarse_score(self, query_tokens: list[str]) -> float:
        """Field-weighted token agreement with the query, in [0, 1]."""
        if not query_tokens:
            return 0.0
        best = 0.0
        for field_name, weight in FIELD_WEIGHTS.items():
            tokens = self.field_tokens[field_name]
            if not tokens:
                continue
            field_score = sum(_token_score(qt, tokens) for qt in query_tokens) / len(
                query_tokens
            )
            best = max(best, weight * field_score)
        return min(1.0, best)


class IndexSnapshot:
    """Immutable, versioned index over one copy of the catalog."""

    def __init__(
        self,
        records: Iterable[MedicineRecord],
        version: int,
        built_at: float,
        built_at_wallclock: datetime | None = None,
    ) -> None:
        self.version = version
        self.built_at = built_at
        self.built_at_wallclock = built_at_wallclock or datetime.now()

        entries: list[IndexEntry] = []
        for record in records:
            entry = IndexEntry.from_record(record)
            if not entry.normalized_name:
                logger.warning(
                    "Skipping medicine %s: name is empty after normalization", record.id
                )
                continue
            entries.append(entry)
        self._entries: tuple[IndexEntry, ...] = tuple(entries)

        inverted: dict[str, set[int]] = {}
        by_name: dict[str, list[int]] = {}
        by_generic: dict[str, list[int]] = {}
        for pos, entry in enumerate(self._entries):
            for tokens in entry.field_tokens.values():
                for token in tokens:
                    inverted.setdefault(token, set()).add(pos)
            by_name.setdefault(entry.normalized_name, []).append(pos)
            if entry.normalized_generic:
                by_generic.setdefault(entry.normalized_generic, []).append(pos)

        self._inverted = {k: frozenset(v) for k, v in inverted.items()}
        self._by_name = {k: tuple(v) for k, v in by_name.items()}
        self._by_generic = {k: tuple(v) for k, v in by_generic.items()}

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        return self._entries

    @staticmethod
    def _rank_key(entry: IndexEntry) -> tuple[int, str]:
        return (len(entry.record.name), entry.record.id)

    def exact_name_matches(self, normalized_query: str) -> list[IndexEntry]:
        entries = [self._entries[p] for p in self._by_name.get(normalized_query, ())]
        return sorted(entries, key=self._rank_key)

    def exact_generic_matches(self, normalized_query: str) -> list[IndexEntry]:
        entries = [self._entries[p] for p in self._by_generic.get(normalized_query, ())]
        return sorted(entries, key=self._rank_key)

    def candidates(
        self, query: str, limit: int = INDEX_MAX_CANDIDATES
    ) -> list[tuple[IndexEntry, float]]:
        """Return up to `limit` (entry, coarse score) pairs worth full scoring.

        Records sharing no token with the query are skipped only when at
        least one query token of length >= 2 is present in the index;
        otherwise every record is considered.
        """
        query_tokens = tokenize(query)
        indexed = [
            t
            for t in query_tokens
            if len(t) >= MIN_INDEXED_TOKEN_LENGTH and t in self._inverted
        ]

        if indexed:
            positions: set[int] = set()
            for token in query_tokens:
                positions |= self._inverted.get(token, frozenset())
            pool = [self._entries[p] for p in positions]
        else:
            pool = list(self._entries)

        scored = [(entry, entry.coarse_score(query_tokens)) for entry in pool]
        scored.sort(key=lambda pair: (-pair[1], *self._rank_key(pair[0])))
        return scored[:limit]


class SearchIndex:
    """Owns the current IndexSnapshot and its refresh lifecycle.

    Construct once at startup and pass it to the components that query it.
    """

    def __init__(
        self,
        store: RecordStore,
        ttl_seconds: float = INDEX_TTL_SECONDS,
        max_candidates: int = INDEX_MAX_CANDIDATES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.max_candidates = max_candidates
        self._clock = clock
        self._snapshot: IndexSnapshot | None = None
        self._rebuild_task: asyncio.Task | None = None
        self._version = 0

    @property
    def rebuild_in_progress(self) -> bool:
        return self._rebuild_task is not None and not self._rebuild_task.done()

    def snapshot(self) -> IndexSnapshot:
        """Return the current snapshot without triggering a build."""
        if self._snapshot is None:
            raise IndexNotReady("Search index has not been built yet")
        return self._snapshot

    def is_stale(self, snapshot: IndexSnapshot) -> bool:
        return self._clock() - snapshot.built_at > self.ttl_seconds

    # -- Building -------------------------------------------------------------

    async def _rebuild(self) -> IndexSnapshot:
        start = self._clock()
        try:
            medicines = await self._store.list_all_medicines()
        except RecordStoreUnavailable:
            raise
        except Exception as e:
            raise RecordStoreUnavailable(
                self._store._source_name, f"list_all_medicines failed: {e}"
            ) from e

        snapshot = IndexSnapshot(
            medicines, version=self._version + 1, built_at=self._clock()
        )
        self._version = snapshot.version
        self._snapshot = snapshot
        logger.info(
            "Search index v%d built with %d medicines in %.3fs",
            snapshot.version,
            len(snapshot),
            self._clock() - start,
        )
        return snapshot

    def _start_rebuild(self) -> asyncio.Task:
        if not self.rebuild_in_progress:
            self._rebuild_task = asyncio.create_task(self._rebuild())
            self._rebuild_task.add_done_callback(self._log_rebuild_failure)
        return self._rebuild_task

    def _log_rebuild_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            current = self._snapshot.version if self._snapshot else None
            logger.warning(
                "Search index rebuild failed; keeping snapshot v%s: %s", current, error
            )

    async def build(self) -> IndexSnapshot:
        """Build a snapshot, or join the rebuild already in flight."""
        return await asyncio.shield(self._start_rebuild())

    async def force_refresh(self) -> IndexSnapshot:
        """Rebuild from the record store now, ignoring the TTL."""
        if self.rebuild_in_progress:
            # the in-flight rebuild may have read the catalog before the change
            # that prompted this refresh; its failure is logged by the callback
            await asyncio.wait({self._rebuild_task})
        logger.info("Forced search index refresh")
        return await self.build()

    async def current(self) -> IndexSnapshot:
        """Return the snapshot to query, building it on first use."""
        snapshot = self._snapshot
        if snapshot is None:
            logger.info("Search index not ready; building on demand")
            return await self.build()
        if self.is_stale(snapshot) and not self.rebuild_in_progress:
            logger.debug(
                "Search index v%d is stale; refreshing in background", snapshot.version
            )
            self._start_rebuild()
        return snapshot

    async def query(
        self, text: str, limit: int | None = None
    ) -> list[tuple[IndexEntry, float]]:
        """Coarse candidates for text from the current snapshot."""
        snapshot = await self.current()
        return snapshot.candidates(text, limit or self.max_candidates)

    async def close(self) -> None:
        """Cancel any in-flight rebuild and drop the snapshot."""
        if self.rebuild_in_progress:
            self._rebuild_task.cancel()
            try:
                await self._rebuild_task
            except asyncio.CancelledError:
                pass
        self._snapshot = None

    def stats(self) -> IndexStats:
        snapshot = self._snapshot
        if snapshot is None:
            return IndexStats(
                ttl_seconds=self.ttl_seconds,
                rebuild_in_progress=self.rebuild_in_progress,
            )
        return IndexStats(
            index_size=len(snapshot),
            version=snapshot.version,
            built_at=snapshot.built_at_wallclock,
            ttl_seconds=self.ttl_seconds,
            status="stale" if self.is_stale(snapshot) else "fresh",
            rebuild_in_progress=self.rebuild_in_progress,
        )
