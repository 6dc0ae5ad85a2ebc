"""Slot organizer — buckets ranked candidates by time-of-day slot and category."""

from collections import defaultdict

from tripsmith.schemas.candidate import Candidate
from tripsmith.services.planner_config import SLOTS

Buckets = dict[str, dict[str, list[Candidate]]]

_MORNING_DINING = ("breakfast", "cafe", "café")


def organize(candidates: list[Candidate]) -> Buckets:
    """Single order-preserving pass; each call returns fresh buckets.

    - dining: breakfast spots and cafes go to morning only, everything else
      to both afternoon and evening
    - nightlife: evening only
    - culture / attraction: whichever of morning and afternoon holds fewer of
      that category (ties to morning); every third culture item is also
      offered in the evening
    - anything else: afternoon
    """
    buckets: Buckets = {slot: defaultdict(list) for slot in SLOTS}
    culture_seen = 0

    for c in candidates:
        cat = c.category
        if cat == "dining":
            name = c.name.lower()
            if any(word in name for word in _MORNING_DINING):
                buckets["morning"][cat].append(c)
            else:
                buckets["afternoon"][cat].append(c)
                buckets["evening"][cat].append(c)
        elif cat == "nightlife":
            buckets["evening"][cat].append(c)
        elif cat in ("culture", "attraction"):
            if len(buckets["morning"][cat]) <= len(buckets["afternoon"][cat]):
                buckets["morning"][cat].append(c)
            else:
                buckets["afternoon"][cat].append(c)
            if cat == "culture":
                culture_seen += 1
                if culture_seen % 3 == 0:
                    buckets["evening"][cat].append(c)
        else:
            buckets["afternoon"][cat].append(c)

    return {slot: dict(cats) for slot, cats in buckets.items()}
