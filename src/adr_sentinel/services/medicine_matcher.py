"""
Medicine matcher: resolve free-text medicine names against the catalog.

Strategy: exact short-circuit → coarse candidates from the search index →
full similarity scoring → ordered classification → prefix boost → filter,
rank and truncate.
"""

import logging

from adr_sentinel.constants import (
    CONTAINS_GENERIC_MULTIPLIER,
    CONTAINS_NAME_MULTIPLIER,
    DEFAULT_MIN_SCORE,
    EXACT_GENERIC_SCORE,
    HIGH_SIMILARITY_GENERIC_MULTIPLIER,
    HIGH_SIMILARITY_NAME_MULTIPLIER,
    HIGH_SIMILARITY_THRESHOLD,
    NON_EXACT_SCORE_CAP,
    PREFIX_BOOST,
    SUGGESTION_LIMIT,
    SUGGESTION_MIN_LENGTH,
    SUGGESTION_MIN_SCORE,
)
from adr_sentinel.models.model_matching import (
    MatchOptions,
    MatchType,
    SimilarityScore,
    Suggestion,
)
from adr_sentinel.models.model_medicine import MedicineRecord
from adr_sentinel.services.search_index import IndexEntry, SearchIndex, tokenize
from adr_sentinel.services.similarity import (
    combined_similarity,
    normalize_text,
    string_similarity_breakdown,
)

logger = logging.getLogger(__name__)

# Classification order; also the tie-break priority between equal scores.
MATCH_TYPE_PRIORITY: dict[MatchType, int] = {
    MatchType.EXACT_NAME: 0,
    MatchType.EXACT_GENERIC: 1,
    MatchType.CONTAINS_NAME: 2,
    MatchType.PREFIX_CONTAINS_NAME: 2,
    MatchType.CONTAINS_GENERIC: 3,
    MatchType.PREFIX_CONTAINS_GENERIC: 3,
    MatchType.HIGH_SIMILARITY_NAME: 4,
    MatchType.PREFIX_HIGH_SIMILARITY_NAME: 4,
    MatchType.HIGH_SIMILARITY_GENERIC: 5,
    MatchType.PREFIX_HIGH_SIMILARITY_GENERIC: 5,
    MatchType.FUZZY: 6,
    MatchType.PREFIX_FUZZY: 6,
}


def rank_key(result: SimilarityScore) -> tuple[float, int, int, str]:
    """Sort key: higher score, then stronger match type, then shorter name."""
    return (
        -result.combined_score,
        MATCH_TYPE_PRIORITY[result.match_type],
        len(result.candidate_name),
        result.candidate_id,
    )


def highlight(name: str, query: str) -> str:
    """Wrap the first case-insensitive occurrence of query in name with **."""
    if not query:
        return name
    index = name.lower().find(query.lower())
    if index == -1:
        return name
    end = index + len(query)
    return f"{name[:index]}**{name[index:end]}**{name[end:]}"


def classify(
    query: str, name: str, generic: str, name_sim: float, generic_sim: float, coarse: float
) -> tuple[MatchType, float]:
    """Ordered match-type rules; the first rule that applies wins.

    All text arguments must already be normalized.
    """
    if query == name:
        match_type, score = MatchType.EXACT_NAME, 1.0
    elif generic and query == generic:
        match_type, score = MatchType.EXACT_GENERIC, EXACT_GENERIC_SCORE
    elif query in name:
        match_type = MatchType.CONTAINS_NAME
        score = max(name_sim * CONTAINS_NAME_MULTIPLIER, coarse)
    elif generic and query in generic:
        match_type = MatchType.CONTAINS_GENERIC
        score = max(generic_sim * CONTAINS_GENERIC_MULTIPLIER, coarse)
    elif name_sim > HIGH_SIMILARITY_THRESHOLD:
        match_type = MatchType.HIGH_SIMILARITY_NAME
        score = max(name_sim * HIGH_SIMILARITY_NAME_MULTIPLIER, coarse)
    elif generic_sim > HIGH_SIMILARITY_THRESHOLD:
        match_type = MatchType.HIGH_SIMILARITY_GENERIC
        score = max(generic_sim * HIGH_SIMILARITY_GENERIC_MULTIPLIER, coarse)
    else:
        match_type, score = MatchType.FUZZY, coarse

    if name.startswith(query) or (generic and generic.startswith(query)):
        score = min(1.0, score * PREFIX_BOOST)
        match_type = match_type.with_prefix()

    # 1.0 is reserved for exact string equality
    if not match_type.is_exact:
        score = min(score, NON_EXACT_SCORE_CAP)
    return match_type, score


def score_entry(entry: IndexEntry, query: str, coarse: float) -> SimilarityScore:
    """Score one index entry against a normalized query."""
    record = entry.record
    name = entry.normalized_name
    generic = entry.normalized_generic

    name_metrics = string_similarity_breakdown(query, name)
    name_sim = name_metrics["combined"]
    generic_sim = combined_similarity(query, generic) if generic else 0.0

    match_type, score = classify(query, name, generic, name_sim, generic_sim, coarse)

    return SimilarityScore(
        candidate_id=record.id,
        candidate_name=record.name,
        generic_name=record.generic_name,
        medicine=record,
        per_metric_scores={
            "name_edit": name_metrics["edit"],
            "name_jaro_winkler": name_metrics["jaro_winkler"],
            "name_ngram": name_metrics["ngram"],
            "name_similarity": name_sim,
            "generic_similarity": generic_sim,
            "coarse": coarse,
            "query_contains_name": float(bool(name) and name in query),
            "query_contains_generic": float(bool(generic) and generic in query),
        },
        combined_score=score,
        match_type=match_type,
        highlighted_match=highlight(record.name, query),
    )


def _exact_result(entry: IndexEntry, query: str, match_type: MatchType) -> SimilarityScore:
    record = entry.record
    return SimilarityScore(
        candidate_id=record.id,
        candidate_name=record.name,
        generic_name=record.generic_name,
        medicine=record,
        per_metric_scores={
            "name_similarity": 1.0 if match_type is MatchType.EXACT_NAME else 0.0,
            "generic_similarity": 1.0 if match_type is MatchType.EXACT_GENERIC else 0.0,
        },
        combined_score=1.0,
        match_type=match_type,
        highlighted_match=highlight(record.name, query),
    )


class MedicineMatcher:
    """Resolves free-text names to ranked catalog candidates."""

    def __init__(self, index: SearchIndex) -> None:
        self._index = index

    async def match(
        self, query: str, options: MatchOptions | None = None
    ) -> list[SimilarityScore]:
        """Return ranked candidates for query.

        Args:
            query: Free-text medicine name, typed or extracted.
            options: max_results, min_score and include_exact; defaults apply
                when omitted.

        Returns:
            Candidates sorted by score (ties: match type, shorter name, id).
            Empty for a blank query. Raises RecordStoreUnavailable if the
            index has to be built and the record store fails.
        """
        options = options or MatchOptions()
        normalized = normalize_text(query)
        if not normalized:
            return []

        snapshot = await self._index.current()

        if options.include_exact:
            for entries, match_type in (
                (snapshot.exact_name_matches(normalized), MatchType.EXACT_NAME),
                (snapshot.exact_generic_matches(normalized), MatchType.EXACT_GENERIC),
            ):
                if entries:
                    logger.debug("Exact %s match for %r", match_type.value, normalized)
                    return [_exact_result(entries[0], normalized, match_type)]

        candidates = snapshot.candidates(normalized, self._index.max_candidates)
        results = self._score_all(candidates, normalized)
        results = [r for r in results if r.combined_score >= options.min_score]
        results.sort(key=rank_key)

        logger.debug(
            "Query %r: %d candidates, %d above min_score=%.2f (index v%d)",
            normalized,
            len(candidates),
            len(results),
            options.min_score,
            snapshot.version,
        )
        return results[: options.max_results]

    @staticmethod
    def _score_all(
        candidates: list[tuple[IndexEntry, float]], query: str
    ) -> list[SimilarityScore]:
        results: list[SimilarityScore] = []
        for entry, coarse in candidates:
            try:
                results.append(score_entry(entry, query, coarse))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping medicine %s: %s", entry.record.id, e)
        return results

    async def suggest(
        self, partial_name: str, limit: int = SUGGESTION_LIMIT
    ) -> list[Suggestion]:
        """Autocomplete suggestions for a partially typed name."""
        if not partial_name or len(partial_name.strip()) < SUGGESTION_MIN_LENGTH:
            return []
        results = await self.match(
            partial_name,
            MatchOptions(max_results=limit * 2, min_score=SUGGESTION_MIN_SCORE),
        )
        return [Suggestion.from_score(r) for r in results[:limit]]

    async def find_exact_matches(self, query: str) -> list[MedicineRecord]:
        """Every record whose name or generic name equals query (case-insensitive)."""
        normalized = normalize_text(query)
        if not normalized:
            return []
        snapshot = await self._index.current()
        seen: set[str] = set()
        matches: list[MedicineRecord] = []
        for entry in snapshot.exact_name_matches(normalized) + snapshot.exact_generic_matches(
            normalized
        ):
            if entry.record.id not in seen:
                seen.add(entry.record.id)
                matches.append(entry.record)
        return matches

    async def search_by_category(
        self, category: str, query: str = "", limit: int = 10
    ) -> list[MedicineRecord]:
        """Records in a category, ranked against query when one is given."""
        wanted = normalize_text(category)
        snapshot = await self._index.current()
        in_category = [
            entry
            for entry in snapshot.entries
            if wanted in normalize_text(entry.record.category)
        ]

        normalized = normalize_text(query)
        if not normalized:
            return [entry.record for entry in in_category[:limit]]

        query_tokens = tokenize(normalized)
        candidates = [(entry, entry.coarse_score(query_tokens)) for entry in in_category]
        results = [
            r
            for r in self._score_all(candidates, normalized)
            if r.combined_score >= DEFAULT_MIN_SCORE
        ]
        results.sort(key=rank_key)
        return [r.medicine for r in results[:limit]]
