"""
Fragrance Tracker Backend: External Fragrance Search
=====================================================

What:  Looks fragrances up in external databases so users can import them
       into their catalog with notes already filled in.
How:   Cache-aside over a linear fallback of sources:

           cache hit? ──yes──▶ return cached list
               │ no
               ▼
           Fragrantica-style API ─(empty / error)─▶ Parfumo-style API
               ─(empty / error)─▶ built-in catalog
               │ first non-empty result
               ▼
           store in cache (TTL) ──▶ return

       When every source fails or comes back empty the search returns []
       and nothing is cached.
Who:   GET /api/fragrances/search, /health and /cache.

Resilience:
    - httpx.AsyncClient with a request timeout
    - Tenacity retry with exponential backoff + jitter on transport errors
      and 5xx responses; 4xx responses fail the source immediately
"""

import fnmatch
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
from cachetools import TTLCache
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from fragrance_tracker.config import settings
from fragrance_tracker.schemas.fragrance import FragranceNotes
from fragrance_tracker.schemas.search import ExternalFragrance

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "fragrance_search:"
MIN_QUERY_LENGTH = 2


# ══════════════════════════════════════════════════════════════════════════
# Result Cache
# ══════════════════════════════════════════════════════════════════════════


class SearchCache:
    """
    Bounded key → value store with per-entry expiry, backed by
    `cachetools.TTLCache`.

    Expired entries are evicted on every write and whenever the size is
    read. Once `maxsize` live entries exist the least recently used one
    makes room. Results are lost on restart.
    """

    def __init__(
        self,
        ttl_seconds: int,
        enabled: bool = True,
        maxsize: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=clock)

    @property
    def maxsize(self) -> int:
        return int(self._entries.maxsize)

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        self._entries[key] = value

    def clear(self, pattern: Optional[str] = None) -> int:
        """Remove live keys matching a glob pattern (all keys when None). Returns the count."""
        self._entries.expire()
        keys = [key for key in list(self._entries) if pattern is None or fnmatch.fnmatchcase(key, pattern)]
        for key in keys:
            self._entries.pop(key, None)
        return len(keys)

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)


# ══════════════════════════════════════════════════════════════════════════
# Response Parsers
# ══════════════════════════════════════════════════════════════════════════


def _as_list(value: Any) -> List[str]:
    return [str(item) for item in value] if isinstance(value, list) else []


def _as_year(value: Any) -> Optional[int]:
    try:
        return int(value) if value else None
    except (TypeError, ValueError):
        return None


def parse_fragrantica(payload: Any) -> List[ExternalFragrance]:
    """`{"results": [{id, name, brand, year, concentration, top_notes, ...}]}`"""
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        return []
    return [
        ExternalFragrance(
            external_id=str(item.get("id") or ""),
            name=item.get("name") or "",
            brand=item.get("brand") or "",
            year=_as_year(item.get("year")),
            concentration=item.get("concentration") or None,
            notes=FragranceNotes(
                top=_as_list(item.get("top_notes")),
                middle=_as_list(item.get("middle_notes")),
                base=_as_list(item.get("base_notes")),
            ),
            image_url=item.get("image_url") or None,
            description=item.get("description") or None,
            source="fragrantica",
        )
        for item in payload["results"]
        if isinstance(item, dict)
    ]


def parse_parfumo(payload: Any) -> List[ExternalFragrance]:
    """`{"fragrances": [{id, title, brand, year, type, notes: {top, heart, base}, image}]}`"""
    if not isinstance(payload, dict) or not isinstance(payload.get("fragrances"), list):
        return []
    results = []
    for item in payload["fragrances"]:
        if not isinstance(item, dict):
            continue
        notes = item.get("notes") if isinstance(item.get("notes"), dict) else {}
        results.append(
            ExternalFragrance(
                external_id=str(item.get("id") or ""),
                name=item.get("title") or "",
                brand=item.get("brand") or "",
                year=_as_year(item.get("year")),
                concentration=item.get("type") or None,
                notes=FragranceNotes(
                    top=_as_list(notes.get("top")),
                    middle=_as_list(notes.get("heart")),
                    base=_as_list(notes.get("base")),
                ),
                image_url=item.get("image") or None,
                description=item.get("description") or None,
                source="parfumo",
            )
        )
    return results


# Offline fallback so search keeps working without network access
BUILTIN_CATALOG: List[ExternalFragrance] = [
    ExternalFragrance(
        external_id="catalog-1",
        name="Aventus",
        brand="Creed",
        year=2010,
        concentration="EDP",
        notes=FragranceNotes(
            top=["Pineapple", "Bergamot", "Black Currant", "Apple"],
            middle=["Rose", "Dry Birch", "Moroccan Jasmine", "Patchouli"],
            base=["Oak Moss", "Musk", "Ambergris", "Vanilla"],
        ),
        description="A bold, masculine fragrance with fruity and smoky notes.",
        source="catalog",
    ),
    ExternalFragrance(
        external_id="catalog-2",
        name="Sauvage",
        brand="Dior",
        year=2015,
        concentration="EDT",
        notes=FragranceNotes(
            top=["Calabrian Bergamot", "Pepper"],
            middle=["Sichuan Pepper", "Lavender", "Pink Pepper", "Vetiver", "Patchouli", "Geranium", "Elemi"],
            base=["Ambroxan", "Cedar", "Labdanum"],
        ),
        description="A fresh and spicy fragrance inspired by wide-open spaces.",
        source="catalog",
    ),
    ExternalFragrance(
        external_id="catalog-3",
        name="Bleu de Chanel",
        brand="Chanel",
        year=2010,
        concentration="EDP",
        notes=FragranceNotes(
            top=["Grapefruit", "Lemon", "Mint", "Pink Pepper"],
            middle=["Ginger", "Nutmeg", "Jasmine", "Melon"],
            base=["Incense", "Amber", "Sandalwood", "Patchouli", "White Musk", "Cedar"],
        ),
        description="An aromatic-woody fragrance that embodies freedom.",
        source="catalog",
    ),
]


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


# ══════════════════════════════════════════════════════════════════════════
# Search Service
# ══════════════════════════════════════════════════════════════════════════


class FragranceSearchService:
    """
    External search with cache-aside and source fallback.

    Constructed once by the application factory and stored on `app.state`;
    the lifespan closes its HTTP client on shutdown.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        cache: Optional[SearchCache] = None,
        fragrantica_url: Optional[str] = None,
        parfumo_url: Optional[str] = None,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
        jitter: float = 1,
    ):
        self._client = client or httpx.AsyncClient(
            timeout=settings.search_request_timeout,
            headers={"User-Agent": "FragranceTracker/1.0", "Accept": "application/json"},
        )
        self.cache = cache or SearchCache(
            ttl_seconds=settings.search_cache_ttl,
            enabled=settings.search_cache_enabled,
            maxsize=settings.search_cache_maxsize,
        )
        self.fragrantica_url = fragrantica_url or settings.fragrantica_search_url
        self.parfumo_url = parfumo_url or settings.parfumo_search_url
        self._max_attempts = max_attempts or settings.retry_max_attempts
        self._min_wait = settings.retry_min_wait if min_wait is None else min_wait
        self._max_wait = settings.retry_max_wait if max_wait is None else max_wait
        self._jitter = jitter

    async def search(self, query: str) -> List[ExternalFragrance]:
        """
        Search every source in order and return the first non-empty list.

        Queries shorter than two characters after trimming return [] without
        touching the cache or the network.
        """
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return []

        normalized = query.strip().lower()
        cache_key = f"{CACHE_KEY_PREFIX}{normalized}"

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Search cache hit: %s", normalized)
            return cached

        sources = (
            ("fragrantica", self._search_fragrantica),
            ("parfumo", self._search_parfumo),
            ("catalog", self._search_catalog),
        )
        for name, source in sources:
            try:
                results = await source(normalized)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Search source %s failed for '%s': %s", name, normalized, str(e))
                continue
            if results:
                logger.info("Search '%s' answered by %s (%d results)", normalized, name, len(results))
                self.cache.set(cache_key, results)
                return results

        logger.warning("All search sources failed or were empty for '%s'", normalized)
        return []

    async def health(self) -> Dict[str, Any]:
        """Cache flag plus a single unretried probe per external source."""
        return {
            "cache": self.cache.enabled,
            "external_apis": {
                "fragrantica": await self._probe(self.fragrantica_url),
                "parfumo": await self._probe(self.parfumo_url),
            },
        }

    def clear_cache(self, pattern: Optional[str] = None) -> int:
        cleared = self.cache.clear(pattern)
        logger.info("Search cache cleared: %d entries (pattern=%s)", cleared, pattern)
        return cleared

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Sources ───────────────────────────────────────────────────────────

    async def _search_fragrantica(self, query: str) -> List[ExternalFragrance]:
        return parse_fragrantica(await self._get_json(self.fragrantica_url, {"q": query}))

    async def _search_parfumo(self, query: str) -> List[ExternalFragrance]:
        return parse_parfumo(await self._get_json(self.parfumo_url, {"query": query}))

    async def _search_catalog(self, query: str) -> List[ExternalFragrance]:
        return [
            fragrance
            for fragrance in BUILTIN_CATALOG
            if query in fragrance.name.lower() or query in fragrance.brand.lower()
        ]

    async def _get_json(self, url: str, params: Dict[str, str]) -> Any:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(
                initial=self._min_wait,
                max=self._max_wait,
                jitter=self._jitter,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                response = await self._client.get(url, params=params)
                response.raise_for_status()
        return response.json()

    async def _probe(self, url: str) -> bool:
        try:
            response = await self._client.get(url, params={"q": "test"})
        except httpx.HTTPError as e:
            logger.warning("Search health probe failed for %s: %s", url, str(e))
            return False
        return response.status_code < 500
