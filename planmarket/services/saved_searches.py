"""Named copies of search filters, owned by one user."""

from __future__ import annotations

import logging
from typing import List, Optional

from planmarket.backends.base import Backend, eq, first_row, order
from planmarket.domain.records import SavedSearch
from planmarket.errors import AuthenticationRequired, NotFoundError, RemoteError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_NAME = 'My search'
MAX_NAME_LENGTH = 120


class SavedSearches:
    def __init__(self, backend: Backend):
        self.backend = backend

    def save(self, ctx, name: Optional[str] = None) -> SavedSearch:
        """Persist the session's current filters."""
        user = self._require_user(ctx)
        name = (name or '').strip() or DEFAULT_NAME
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f'Name must be {MAX_NAME_LENGTH} characters or less.')
        row = {'user_id': user.id, 'name': name, 'filters': ctx.filters.to_record()}
        result = self.backend.insert('saved_searches', row, auth=ctx.auth)
        if not result.ok:
            logger.error('Saving search for user %s failed: %s', user.id, result.error)
            raise RemoteError(f'Saving the search failed: {result.error}')
        return SavedSearch.from_record(result.data or row)

    def list_searches(self, ctx) -> List[SavedSearch]:
        user = self._require_user(ctx)
        result = self.backend.select(
            'saved_searches',
            [eq('user_id', user.id), order('created_at', descending=True)],
            auth=ctx.auth,
        )
        if not result.ok:
            raise RemoteError(f'Loading saved searches failed: {result.error}')
        return [SavedSearch.from_record(row) for row in result.data or []]

    def get(self, ctx, search_id: str) -> SavedSearch:
        user = self._require_user(ctx)
        result = self.backend.select(
            'saved_searches',
            [eq('id', search_id), eq('user_id', user.id)],
            auth=ctx.auth,
        )
        if not result.ok:
            raise RemoteError(f'Loading the saved search failed: {result.error}')
        row = first_row(result)
        if row is None:
            raise NotFoundError('Saved search not found.')
        return SavedSearch.from_record(row)

    def delete(self, ctx, search_id: str) -> None:
        saved = self.get(ctx, search_id)
        result = self.backend.delete(
            'saved_searches',
            [eq('id', saved.id), eq('user_id', saved.user_id)],
            auth=ctx.auth,
        )
        if not result.ok:
            raise RemoteError(f'Deleting the saved search failed: {result.error}')

    def apply(self, ctx, search_id: str, executor):
        """Load a saved search into the session and run it."""
        saved = self.get(ctx, search_id)
        return saved, executor.replace_filters(ctx, saved.filters)

    @staticmethod
    def _require_user(ctx):
        if not ctx.is_authenticated:
            raise AuthenticationRequired('Sign in to manage saved searches.')
        return ctx.user
