"""
Fuzzy search over partners and products.

The index is an explicit object built from one snapshot; rebuild it when the
snapshot changes.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Optional, Sequence

from . import settings
from .schemas import Article, ClientContract, SearchResult, SearchResultType, SupplierContract
from .utils import format_weight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entity:
    code: str
    name: str


def match_score(query: str, values: Sequence[str]) -> float:
    """
    Best similarity of query against any of values, in [0, 1].
    A case-insensitive substring hit scores 1.0; otherwise the
    SequenceMatcher ratio against the whole value or any of its words.
    """
    q = query.strip().lower()
    if not q:
        return 0.0

    best = 0.0
    for value in values:
        v = (value or "").lower()
        if not v:
            continue
        if q in v:
            return 1.0
        for candidate in [v, *v.split()]:
            best = max(best, SequenceMatcher(None, q, candidate).ratio())
    return best


def _rank(query: str, items: Sequence, keys, limit: Optional[int], min_score: float):
    scored = []
    for item in items:
        score = match_score(query, [getattr(item, k) for k in keys])
        if score >= min_score:
            scored.append((score, item))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    if limit is not None:
        scored = scored[:limit]
    return scored


@dataclass(frozen=True)
class SearchIndex:
    suppliers: tuple[Entity, ...] = ()
    clients: tuple[Entity, ...] = ()
    articles: tuple[Article, ...] = ()
    min_score: float = field(default_factory=lambda: settings.SEARCH_MIN_SCORE)

    @classmethod
    def from_data(
        cls,
        articles: Sequence[Article],
        supplier_contracts: Sequence[SupplierContract],
        client_contracts: Sequence[ClientContract],
        min_score: Optional[float] = None,
    ) -> "SearchIndex":
        start = time.perf_counter()

        suppliers: dict[str, Entity] = {}
        for c in supplier_contracts:
            suppliers.setdefault(c.supplier_code, Entity(c.supplier_code, c.supplier_name))

        clients: dict[str, Entity] = {}
        for c in client_contracts:
            clients.setdefault(c.client_code, Entity(c.client_code, c.client_name))

        index = cls(
            suppliers=tuple(suppliers.values()),
            clients=tuple(clients.values()),
            articles=tuple(articles),
            min_score=settings.SEARCH_MIN_SCORE if min_score is None else min_score,
        )
        logger.debug(
            f"Search index built in {(time.perf_counter() - start) * 1000:.1f}ms: "
            f"{len(index.suppliers)} suppliers, {len(index.clients)} clients, "
            f"{len(index.articles)} products"
        )
        return index

    def search_suppliers(self, query: str, limit: int = 20) -> list[Entity]:
        if not query:
            return list(self.suppliers)
        return [e for _, e in _rank(query, self.suppliers, ("name", "code"), limit, self.min_score)]

    def search_clients(self, query: str, limit: int = 20) -> list[Entity]:
        if not query:
            return list(self.clients)
        return [e for _, e in _rank(query, self.clients, ("name", "code"), limit, self.min_score)]

    def search_products(self, query: str, limit: int = 50) -> list[Article]:
        if not query:
            return list(self.articles)
        return [a for _, a in _rank(query, self.articles, ("name", "sku"), limit, self.min_score)]

    def global_search(self, query: str, max_results: int = 15) -> list[SearchResult]:
        """Suppliers, then clients, then products; each capped at ceil(max_results / 3)."""
        if not query or len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
            return []

        per_category = math.ceil(max_results / 3)
        results = []

        for kind, entities in (
            (SearchResultType.SUPPLIER, self.suppliers),
            (SearchResultType.CLIENT, self.clients),
        ):
            for score, e in _rank(query, entities, ("name", "code"), per_category, self.min_score):
                results.append(
                    SearchResult(
                        type=kind,
                        id=e.code,
                        primary_text=e.name,
                        secondary_text=f"Code: {e.code}",
                        code=e.code,
                        score=score,
                    )
                )

        for score, a in _rank(query, self.articles, ("name", "sku"), per_category, self.min_score):
            results.append(
                SearchResult(
                    type=SearchResultType.PRODUCT,
                    id=a.sku,
                    primary_text=a.name,
                    secondary_text=f"SKU: {a.sku} - Stock: {format_weight(a.stock_kg)}",
                    code=a.sku,
                    score=score,
                )
            )

        return results
