"""
Search executor.

Translates :class:`SearchFilters` into one query on ``house_plans`` and
publishes the results to the session context. Overlapping searches from
the same session are resolved by issuance order: the results of an older
search never replace those of a newer one.
"""

from __future__ import annotations

import logging
from typing import List, Mapping

from planmarket.backends.base import Backend, Predicate, order
from planmarket.domain.filters import SearchFilters
from planmarket.domain.records import HousePlan
from planmarket.errors import RemoteError

logger = logging.getLogger(__name__)

# (filter field, plan column, operator)
FILTER_PREDICATES = (
    ('style', 'style', 'eq'),
    ('min_bedrooms', 'bedrooms', 'gte'),
    ('max_bedrooms', 'bedrooms', 'lte'),
    ('min_bathrooms', 'bathrooms', 'gte'),
    ('max_bathrooms', 'bathrooms', 'lte'),
    ('min_floor_area', 'floor_area', 'gte'),
    ('max_floor_area', 'floor_area', 'lte'),
    ('floors', 'floors', 'eq'),
    ('garages', 'garages', 'eq'),
    ('has_pool', 'has_pool', 'eq'),
    ('min_budget', 'estimated_budget', 'gte'),
    ('max_budget', 'estimated_budget', 'lte'),
    ('min_price', 'price', 'gte'),
    ('max_price', 'price', 'lte'),
)


def build_predicates(filters: SearchFilters) -> List[Predicate]:
    """One predicate per set field, newest plans first."""
    predicates = [
        Predicate(column, op, getattr(filters, name))
        for name, column, op in FILTER_PREDICATES
        if getattr(filters, name) is not None
    ]
    predicates.append(order('created_at', descending=True))
    return predicates


class SearchExecutor:
    def __init__(self, backend: Backend):
        self.backend = backend

    def search(self, ctx, filters: SearchFilters = None) -> List[HousePlan]:
        """Run one search and publish its results to ``ctx``.

        On a remote failure the previous results stay in place and
        :class:`RemoteError` is raised; the search can simply be retried.
        When a newer search finished first, its results are returned.
        """
        with ctx.lock:
            filters = ctx.filters if filters is None else filters
            ticket = ctx.issue_search_ticket()
        return self._run(ctx, filters, ticket)

    def update_filters(self, ctx, update: Mapping) -> List[HousePlan]:
        """Merge a partial filter update into the session and search again."""
        # Merge and ticket are taken together so a later merge always
        # carries the newer ticket.
        with ctx.lock:
            ctx.filters = ctx.filters.merge(update)
            filters = ctx.filters
            ticket = ctx.issue_search_ticket()
        return self._run(ctx, filters, ticket)

    def replace_filters(self, ctx, filters: SearchFilters) -> List[HousePlan]:
        with ctx.lock:
            ctx.filters = filters
            ticket = ctx.issue_search_ticket()
        return self._run(ctx, filters, ticket)

    def _run(self, ctx, filters: SearchFilters, ticket: int) -> List[HousePlan]:
        result = self.backend.select('house_plans', build_predicates(filters))
        if not result.ok:
            logger.error('Plan search failed (ticket %s): %s', ticket, result.error)
            raise RemoteError(f'Search failed: {result.error}')

        plans = [HousePlan.from_record(row) for row in result.data or []]
        if not ctx.apply_results(ticket, plans):
            logger.debug('Discarded stale search results (ticket %s)', ticket)
            return list(ctx.results)
        return plans
