"""Reddit client — mines venue mentions from traveler posts into candidates."""

import asyncio
import logging
import re
from dataclasses import dataclass, field

import httpx

from tripsmith.config import settings
from tripsmith.errors import ProviderError, ProviderUnavailable
from tripsmith.schemas.candidate import Candidate
from tripsmith.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)

_VENUE_SUFFIX = r"(?:Restaurant|Cafe|Café|Bistro|Bar|Pub|Club|Museum|Gallery|Park|Garden|Beach|Market|Temple|Cathedral|Palace)"
_PROPER = r"(?:[A-Z][\w'’\-]+(?: +(?:de|del|la|le|du|of|the|&)? *[A-Z][\w'’\-]+){0,3})"

VENUE_PATTERNS = [
    # "ate at X", "highly recommend X"
    re.compile(rf"\b(?i:recommend|suggest|try|visit|visited|check out|go to|ate at|went to|dined at)\s+({_PROPER})"),
    # "Something Museum", "Chez Janou Bistro"
    re.compile(rf"\b((?:[A-Z][\w'’\-]+ +){{1,3}}{_VENUE_SUFFIX})\b"),
    # "X is amazing"
    re.compile(rf"\b({_PROPER})\s+(?i:is amazing|is great|is excellent|is fantastic|was incredible|is the best|is a must)"),
    # quoted names
    re.compile(r"\"([A-Z][^\"\n]{2,35})\""),
]

_REJECT = re.compile(
    r"^(?:I|I'm|I've|We|We've|You|They|He|She|It|It's|This|That|These|Those|There|Here|When|Where|"
    r"What|Why|How|Who|The|My|Our|Best|Great|Amazing|Good|Nice|Awesome|Edit|Update|Also|Just|Thanks)\b"
)

POSITIVE_WORDS = (
    "amazing", "awesome", "excellent", "fantastic", "great", "love", "loved",
    "perfect", "wonderful", "incredible", "outstanding", "brilliant", "superb",
    "highly recommend", "must visit", "must see", "must do", "worth it",
    "don't miss", "favorite", "favourite", "best",
)
NEGATIVE_WORDS = (
    "terrible", "awful", "horrible", "worst", "hate", "hated", "disappointing",
    "overpriced", "tourist trap", "skip", "avoid", "waste", "boring",
    "not worth", "overrated",
)

_PRICE = re.compile(r"\$(\d{1,4})(?:\.\d{2})?")

CATEGORY_KEYWORDS = [
    ("dining", ("restaurant", "cafe", "café", "bistro", "brasserie", "bakery", "trattoria", "sushi", "taco")),
    ("nightlife", ("bar", "pub", "club", "lounge", "speakeasy")),
    ("culture", ("museum", "gallery", "temple", "church", "cathedral", "palace", "shrine", "opera")),
    ("nature", ("park", "garden", "beach", "lake", "mountain", "falls", "cenote")),
    ("shopping", ("market", "mall", "shop", "bazaar", "boutique")),
]

_LODGING = ("hotel", "hostel", "resort", "airbnb")


@dataclass
class _Mention:
    name: str
    count: int = 0
    sentiment: float = 0.0
    upvotes: int = 0
    prices: list[float] = field(default_factory=list)
    context: str = ""


def extract_venue_names(text: str) -> list[str]:
    """Pull plausible venue names out of free text, first occurrence order."""
    found: list[str] = []
    for pattern in VENUE_PATTERNS:
        for match in pattern.finditer(text):
            name = _clean_name(match.group(1))
            if name and name not in found:
                found.append(name)
    return found


def _clean_name(raw: str) -> str | None:
    name = raw.strip(" .,!?;:'\"")
    name = re.sub(r"\s+", " ", name)
    name = re.sub(r"^(?:The|A|An) ", "", name)
    if len(name) < 3 or len(name) > 40:
        return None
    if not name[0].isupper() or _REJECT.match(name):
        return None
    if name.lower() in _LODGING or any(w in name.lower().split() for w in _LODGING):
        return None
    return name


def sentiment_score(text: str) -> float:
    """Positive minus negative indicator hits, squashed into [-1, 1]."""
    lowered = text.lower()
    pos = sum(lowered.count(w) for w in POSITIVE_WORDS)
    neg = sum(lowered.count(w) for w in NEGATIVE_WORDS)
    if pos + neg == 0:
        return 0.0
    return round((pos - neg) / (pos + neg), 3)


def categorize_venue(name: str, context: str = "") -> str:
    tokens = set(re.findall(r"[\w']+", name.lower()))
    for category, words in CATEGORY_KEYWORDS:
        if tokens.intersection(words):
            return category
    ctx = context.lower()
    if any(w in ctx for w in ("food", "eat", "meal", "dinner", "lunch")):
        return "dining"
    if any(w in ctx for w in ("history", "art", "culture")):
        return "culture"
    return "attraction"


class RedditClient:
    """Adapter for Reddit's public search JSON."""

    name = "reddit"

    def __init__(self):
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.reddit_base_url,
                timeout=15.0,
                headers={"User-Agent": settings.reddit_user_agent},
            )
        return self._client

    async def search(self, criteria: SearchCriteria) -> list[Candidate]:
        if not settings.reddit_enabled:
            raise ProviderUnavailable(self.name, "disabled by configuration")

        queries = [f"{criteria.destination} recommendations"]
        queries += [f"{criteria.destination} {tag}" for tag in criteria.categories[:3]]

        results = await asyncio.gather(*(self._search_posts(q) for q in queries), return_exceptions=True)
        posts: list[dict] = []
        errors = []
        for query, result in zip(queries, results):
            if isinstance(result, BaseException):
                errors.append(result)
                logger.warning(f"Reddit search {query!r} failed: {result}")
                continue
            posts.extend(result)
        if errors and len(errors) == len(queries):
            raise ProviderError(self.name, f"every search failed: {errors[0]}")

        return self.mine_mentions(posts, criteria.destination)

    async def _search_posts(self, query: str) -> list[dict]:
        client = await self._get_client()
        for attempt in range(2):
            try:
                resp = await client.get(
                    "/search.json",
                    params={
                        "q": query,
                        "sort": "relevance",
                        "t": "year",
                        "limit": settings.reddit_post_limit,
                        "type": "link",
                        "restrict_sr": "false",
                    },
                )
                if resp.status_code == 429 and attempt == 0:
                    await asyncio.sleep(1)
                    continue
                resp.raise_for_status()
                children = (resp.json().get("data") or {}).get("children", [])
                return [c.get("data", {}) for c in children]
            except httpx.HTTPStatusError as e:
                raise ProviderError(self.name, f"search returned {e.response.status_code}")
            except httpx.RequestError as e:
                raise ProviderUnavailable(self.name, f"search unreachable: {e}")
        raise ProviderError(self.name, "search rate limited")

    def mine_mentions(self, posts: list[dict], destination: str) -> list[Candidate]:
        """Aggregate venue mentions across posts into ranked candidates."""
        dest_lower = destination.lower()
        mentions: dict[str, _Mention] = {}
        seen_posts: set[str] = set()

        for post in posts:
            post_id = post.get("id") or post.get("permalink") or post.get("title", "")
            if post_id in seen_posts:
                continue
            seen_posts.add(post_id)

            text = f"{post.get('title', '')}\n{post.get('selftext', '')}"
            sentiment = sentiment_score(text)
            prices = [float(p) for p in _PRICE.findall(text) if 0 < float(p) < 500]
            for name in extract_venue_names(text):
                if name.lower() == dest_lower:
                    continue
                key = name.lower()
                m = mentions.setdefault(key, _Mention(name=name, context=text[:300]))
                m.count += 1
                m.sentiment += sentiment
                m.upvotes += int(post.get("score") or 0)
                m.prices.extend(prices[:2])

        candidates = []
        for m in mentions.values():
            avg_sentiment = m.sentiment / m.count
            if avg_sentiment < -0.3:
                continue
            category = categorize_venue(m.name, m.context)
            confidence = min(1.0, 0.3 + 0.1 * min(m.count, 5) + 0.2 * max(avg_sentiment, 0))
            candidates.append(
                Candidate(
                    name=m.name,
                    category=category,
                    description=f"Recommended by travelers in {m.count} Reddit "
                                f"{'post' if m.count == 1 else 'posts'} about {destination}.",
                    estimated_cost=round(sum(m.prices) / len(m.prices), 2) if m.prices else None,
                    confidence=round(confidence, 3),
                    mention_count=m.count,
                    source_tags=[self.name],
                )
            )

        candidates.sort(key=lambda c: (c.mention_count, c.confidence), reverse=True)
        return candidates

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


reddit_client = RedditClient()
