"""Recommendation aggregator — fans out to venue and mention sources, merges, ranks, enriches."""

import asyncio
import logging
import re
import unicodedata

from tripsmith.errors import EnrichmentError
from tripsmith.schemas.candidate import Candidate, categories_for_interests
from tripsmith.schemas.search import SearchCriteria
from tripsmith.schemas.trip import TripRequest
from tripsmith.services.cache_service import TTL_MENTIONS, TTL_PLACES, cache_service
from tripsmith.services.enrichment_service import EnrichmentService, enrichment_service
from tripsmith.services.planner_config import AggregatorConfig, planner_config
from tripsmith.services.providers.base import ProviderChain
from tripsmith.services.providers.google_places_client import google_places_client
from tripsmith.services.providers.reddit_client import reddit_client

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Dedup key: accents folded, punctuation dropped, case and whitespace collapsed."""
    folded = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode()
    folded = re.sub(r"[^\w\s]", " ", folded.lower())
    folded = re.sub(r"^(the|le|la|les|el)\s+", "", folded.strip())
    return " ".join(folded.split())


def merge_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Collapse duplicates by normalized name, keeping first-seen order.

    Mention counts are summed, the highest confidence wins, source tags are
    unioned, and missing fields are filled from later duplicates.
    """
    merged: dict[str, Candidate] = {}
    for c in candidates:
        key = normalize_name(c.name)
        if not key:
            continue
        existing = merged.get(key)
        if existing is None:
            merged[key] = c
            continue

        tags = list(existing.source_tags)
        tags.extend(t for t in c.source_tags if t not in tags)
        merged[key] = existing.model_copy(update={
            "mention_count": existing.mention_count + c.mention_count,
            "confidence": max(existing.confidence, c.confidence),
            "source_tags": tags,
            "description": existing.description or c.description,
            "estimated_cost": existing.estimated_cost if existing.estimated_cost is not None else c.estimated_cost,
            "coordinates": existing.coordinates or c.coordinates,
            "address": existing.address or c.address,
            "rating": existing.rating if existing.rating is not None else c.rating,
        })
    return list(merged.values())


class RecommendationAggregator:
    """Produces the ranked candidate list for one trip request."""

    def __init__(
        self,
        venue_source=None,
        mention_source=None,
        enricher: EnrichmentService | None = None,
        config: AggregatorConfig | None = None,
    ):
        self._venue_source = venue_source
        self._mention_source = mention_source
        self._enricher = enricher
        self.config = config or AggregatorConfig()

    async def recommend(self, request: TripRequest) -> list[Candidate]:
        criteria = SearchCriteria(
            destination=request.destination,
            start_date=request.start_date,
            end_date=request.end_date,
            traveler_count=request.traveler_count,
            categories=list(request.interest_categories),
        )

        sources = []
        if self.config.enable_venue_search and self._venue_source is not None:
            sources.append(self._venue_source)
        if self.config.enable_mention_mining and self._mention_source is not None:
            sources.append(self._mention_source)

        results = await asyncio.gather(
            *(source.search(criteria) for source in sources),
            return_exceptions=True,
        )

        collected: list[Candidate] = []
        for source, result in zip(sources, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.warning(f"Recommendation source {source.name} failed: {result}")
                continue
            collected.extend(result.items)

        merged = merge_candidates(collected)
        affordable = self._filter_by_budget(merged, request)
        ranked = self._rank(affordable, request)[: self.config.max_candidates]
        logger.info(
            f"Recommendations for {request.destination}: {len(collected)} raw, "
            f"{len(merged)} merged, {len(ranked)} ranked"
        )

        if not ranked or not (self.config.enable_enrichment and self._enricher is not None):
            return ranked
        return await self._enrich(ranked, request)

    def _filter_by_budget(self, candidates: list[Candidate], request: TripRequest) -> list[Candidate]:
        limit = request.budget_per_person * self.config.max_activity_budget_share
        kept = [c for c in candidates if c.estimated_cost is None or c.estimated_cost <= limit]
        if len(kept) < len(candidates):
            logger.info(f"Dropped {len(candidates) - len(kept)} candidates above ${limit:.0f} per person")
        return kept

    def _rank(self, candidates: list[Candidate], request: TripRequest) -> list[Candidate]:
        wanted = set(categories_for_interests(request.interest_categories))

        def score(c: Candidate) -> float:
            s = c.confidence
            if c.category in wanted:
                s += self.config.interest_match_bonus
            s += min(self.config.mention_bonus_cap, c.mention_count * self.config.mention_bonus_per_count)
            return s

        return sorted(candidates, key=score, reverse=True)

    async def _enrich(self, ranked: list[Candidate], request: TripRequest) -> list[Candidate]:
        context = {
            "destination": request.destination,
            "start_date": request.start_date.isoformat(),
            "end_date": request.end_date.isoformat(),
            "traveler_count": request.traveler_count,
            "interests": list(request.interest_categories),
        }
        try:
            enriched = await asyncio.wait_for(
                self._enricher.enhance(ranked, context),
                timeout=self.config.enrichment_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Enrichment timed out after {self.config.enrichment_timeout_seconds}s, keeping originals")
            return ranked
        except EnrichmentError as e:
            logger.warning(f"Enrichment failed, keeping originals: {e}")
            return ranked
        except Exception as e:
            logger.error(f"Enrichment raised unexpectedly, keeping originals: {e}")
            return ranked

        if len(enriched) != len(ranked):
            logger.warning(
                f"Enrichment returned {len(enriched)} candidates for {len(ranked)}, discarding"
            )
            return ranked
        return enriched


def build_default_aggregator() -> RecommendationAggregator:
    return RecommendationAggregator(
        venue_source=ProviderChain(
            "venues", [google_places_client],
            item_model=Candidate, cache=cache_service, cache_ttl=TTL_PLACES,
        ),
        mention_source=ProviderChain(
            "mentions", [reddit_client],
            item_model=Candidate, cache=cache_service, cache_ttl=TTL_MENTIONS,
        ),
        enricher=enrichment_service,
        config=planner_config.aggregator,
    )
