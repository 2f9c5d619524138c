"""
Attach catalog metadata to ranked similarity results.

The ranking is authoritative: output order and length always match the
input. A failed lookup leaves that result's metadata empty instead of
dropping the result.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from .catalog.models import TrackMetadata
from .search.similarity import SimilarityResult

logger = logging.getLogger(__name__)

TrackLookup = Callable[[str], Awaitable[Optional[TrackMetadata]]]


@dataclass(frozen=True)
class EnrichedResult:
    """A similarity result paired with its catalog metadata (None when unavailable)."""

    result: SimilarityResult
    track: Optional[TrackMetadata]

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data["track"] = self.track.model_dump(by_alias=True) if self.track is not None else None
        return data


async def enrich_results(
    results: Sequence[SimilarityResult],
    lookup: TrackLookup,
    max_concurrency: int = 8,
) -> List[EnrichedResult]:
    """
    Fetch metadata for every result and join it back in ranking order.

    Args:
        results: Ranked similarity results
        lookup: Async track metadata lookup (one call per distinct track id)
        max_concurrency: Maximum lookups in flight at once

    Returns:
        One EnrichedResult per input result, in input order
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    # dict.fromkeys keeps first-seen order and drops duplicates
    track_ids = list(dict.fromkeys(result.track_id for result in results))
    semaphore = asyncio.Semaphore(max_concurrency)

    async def fetch(track_id: str) -> Optional[TrackMetadata]:
        async with semaphore:
            try:
                return await lookup(track_id)
            except Exception as e:
                logger.warning(f"Metadata lookup failed for {track_id}, returning result without metadata: {e}")
                return None

    # gather preserves argument order, which gives the ordered join
    metadata = await asyncio.gather(*(fetch(track_id) for track_id in track_ids))
    by_id = dict(zip(track_ids, metadata))

    return [EnrichedResult(result=result, track=by_id[result.track_id]) for result in results]
