"""Provider chain — ordered, interchangeable backends with a flagged static fallback."""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from tripsmith.errors import ProviderError, ProviderUnavailable
from tripsmith.schemas.search import SearchCriteria
from tripsmith.services.cache_service import CacheService, cache_key

logger = logging.getLogger(__name__)


class Provider(Protocol):
    """Anything with a name and an async search over SearchCriteria."""

    name: str

    async def search(self, criteria: SearchCriteria) -> list[Any]: ...


@dataclass
class ProviderResult:
    items: list[Any] = field(default_factory=list)
    source: str = ""
    is_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "items": [
                i.model_dump(mode="json") if isinstance(i, BaseModel) else i
                for i in self.items
            ],
            "source": self.source,
            "is_fallback": self.is_fallback,
        }


class ProviderChain:
    """Try each backend in order; the first non-empty result wins.

    When every backend fails or comes back empty, the static ``fallback`` is
    consulted and its result is flagged ``is_fallback``. Without a fallback the
    chain raises ProviderUnavailable. Live results are cached; fallback results
    never are.
    """

    def __init__(
        self,
        name: str,
        backends: list[Provider],
        fallback: Provider | None = None,
        *,
        item_model: type[BaseModel] | None = None,
        cache: CacheService | None = None,
        cache_ttl: int = 0,
    ):
        self.name = name
        self.backends = list(backends)
        self.fallback = fallback
        self._item_model = item_model
        self._cache = cache
        self._cache_ttl = cache_ttl

    async def search(self, criteria: SearchCriteria) -> ProviderResult:
        key = cache_key(f"provider:{self.name}", criteria.cache_params())

        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached and cached.get("items"):
                try:
                    result = ProviderResult(
                        items=self._revive(cached["items"]),
                        source=cached["source"],
                    )
                    logger.info(f"{self.name}: cache hit ({len(result.items)} items from {result.source})")
                    return result
                except (ValidationError, KeyError, TypeError) as e:
                    logger.warning(f"{self.name}: discarding unreadable cache entry: {e}")
                    await self._cache.delete(key)

        for backend in self.backends:
            try:
                items = await backend.search(criteria)
            except ProviderError as e:
                logger.warning(f"{self.name}: {e}")
                continue
            except Exception as e:
                logger.error(f"{self.name}: backend {backend.name} raised: {e}")
                continue

            if items:
                logger.info(f"{self.name}: {len(items)} items from {backend.name}")
                result = ProviderResult(items=list(items), source=backend.name)
                if self._cache is not None and self._cache_ttl:
                    await self._cache.set(key, result.to_dict(), self._cache_ttl)
                return result
            logger.info(f"{self.name}: {backend.name} returned no results")

        if self.fallback is not None:
            items = await self.fallback.search(criteria)
            logger.warning(f"{self.name}: all backends failed, using {self.fallback.name} ({len(items)} items)")
            return ProviderResult(items=list(items), source=self.fallback.name, is_fallback=True)

        raise ProviderUnavailable(self.name, "all backends failed or returned nothing")

    def _revive(self, raw_items: list[dict]) -> list[Any]:
        if self._item_model is None:
            return raw_items
        return [self._item_model.model_validate(i) for i in raw_items]
