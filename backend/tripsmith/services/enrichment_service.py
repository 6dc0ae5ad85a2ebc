"""Enrichment service — LLM rewrite of candidate descriptions and venue insights."""

import asyncio
import json
import logging

from tripsmith.config import settings
from tripsmith.errors import EnrichmentError
from tripsmith.schemas.candidate import Candidate, Enrichment
from tripsmith.services.llm_client import LLMClient, llm_client

logger = logging.getLogger(__name__)

BATCH_SIZE = 15

MODES = ("descriptions_only", "venue_insights")

SYSTEM_PROMPT = """You are a local travel expert writing short, concrete notes about venues
for a traveler's itinerary. Never invent venues and never rename them.

Return ONLY a JSON object of this shape:
{"enhancements": [{"name": "<exact venue name from input>",
                   "description": "<1-2 sentences>",
                   "highlights": ["<short phrase>", ...],
                   "best_time": "<when to go>",
                   "insider_tip": "<one practical tip>"}]}

Return exactly one entry per input venue, in the same order."""

DESCRIPTIONS_ONLY_NOTE = "Only rewrite the description. Leave highlights empty and omit best_time and insider_tip."


class EnrichmentService:
    """Routes candidates through the LLM and maps the response back by name.

    The returned list contains one entry per enhancement the model produced
    for a known name, in input order; callers compare its length against
    the input to decide whether to trust it.
    """

    def __init__(self, client: LLMClient | None = None, mode: str | None = None):
        self._client = client or llm_client
        self.mode = mode or settings.enrichment_mode
        if self.mode not in MODES:
            raise ValueError(f"unknown enrichment mode {self.mode!r}")

    async def enhance(self, candidates: list[Candidate], trip_context: dict) -> list[Candidate]:
        if not candidates:
            return []

        batches = [candidates[i:i + BATCH_SIZE] for i in range(0, len(candidates), BATCH_SIZE)]
        results = await asyncio.gather(*(self._enhance_batch(b, trip_context) for b in batches))
        return [c for batch in results for c in batch]

    async def _enhance_batch(self, batch: list[Candidate], trip_context: dict) -> list[Candidate]:
        system = SYSTEM_PROMPT
        if self.mode == "descriptions_only":
            system = f"{SYSTEM_PROMPT}\n\n{DESCRIPTIONS_ONLY_NOTE}"

        try:
            parsed = await self._client.complete_json(system, self._build_prompt(batch, trip_context))
        except (RuntimeError, ValueError) as e:
            raise EnrichmentError(f"enrichment call failed: {e}") from e

        entries = parsed.get("enhancements")
        if not isinstance(entries, list):
            raise EnrichmentError("response has no 'enhancements' list")

        by_name: dict[str, dict] = {}
        for entry in entries:
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                continue
            by_name.setdefault(entry["name"].strip().lower(), entry)

        if len(by_name) != len(entries):
            logger.warning(
                f"Enrichment returned {len(entries)} entries but {len(by_name)} usable names"
            )

        enriched = []
        for candidate in batch:
            entry = by_name.get(candidate.name.strip().lower())
            if entry is None:
                continue
            enriched.append(self._apply(candidate, entry))
        return enriched

    def _apply(self, candidate: Candidate, entry: dict) -> Candidate:
        description = entry.get("description")
        updates: dict = {}
        if isinstance(description, str) and description.strip():
            updates["description"] = description.strip()

        if self.mode == "venue_insights":
            highlights = entry.get("highlights") or []
            updates["enrichment"] = Enrichment(
                highlights=[str(h) for h in highlights if h][:5] if isinstance(highlights, list) else [],
                best_time=entry.get("best_time") or None,
                insider_tip=entry.get("insider_tip") or None,
            )
        if "llm" not in candidate.source_tags:
            updates["source_tags"] = [*candidate.source_tags, "llm"]
        return candidate.model_copy(update=updates)

    @staticmethod
    def _build_prompt(batch: list[Candidate], trip_context: dict) -> str:
        venues = [
            {"name": c.name, "category": c.category, "description": c.description}
            for c in batch
        ]
        return (
            f"Destination: {trip_context.get('destination')}\n"
            f"Dates: {trip_context.get('start_date')} to {trip_context.get('end_date')}\n"
            f"Travelers: {trip_context.get('traveler_count')}\n"
            f"Interests: {', '.join(trip_context.get('interests', []))}\n\n"
            f"Venues ({len(venues)}):\n{json.dumps(venues, ensure_ascii=False, indent=1)}"
        )


enrichment_service = EnrichmentService()
