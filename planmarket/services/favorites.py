"""Favorite plans of the signed-in user."""

from __future__ import annotations

import logging
from typing import List

from planmarket.backends.base import Backend, eq, in_
from planmarket.domain.records import HousePlan
from planmarket.errors import AuthenticationRequired, RemoteError

logger = logging.getLogger(__name__)


class Favorites:
    def __init__(self, backend: Backend):
        self.backend = backend

    def plan_ids(self, user_id: str, auth=None) -> List[str]:
        result = self.backend.select('favorites', [eq('user_id', user_id)], auth=auth)
        if not result.ok:
            raise RemoteError(f'Loading favorites failed: {result.error}')
        return [str(row['plan_id']) for row in result.data or []]

    def is_favorite(self, ctx, plan_id: str) -> bool:
        if not ctx.is_authenticated:
            return False
        result = self.backend.select(
            'favorites',
            [eq('user_id', ctx.user.id), eq('plan_id', plan_id)],
            auth=ctx.auth,
        )
        if not result.ok:
            logger.error('Favorite lookup failed for plan %s: %s', plan_id, result.error)
            raise RemoteError(f'Loading favorites failed: {result.error}')
        return bool(result.data)

    def toggle(self, ctx, plan_id: str) -> bool:
        """Add or remove ``plan_id``; returns whether it is now a favorite."""
        if not ctx.is_authenticated:
            raise AuthenticationRequired('Sign in to save favorites.')
        user = ctx.user
        if self.is_favorite(ctx, plan_id):
            result = self.backend.delete(
                'favorites',
                [eq('user_id', user.id), eq('plan_id', plan_id)],
                auth=ctx.auth,
            )
            now_favorite = False
        else:
            result = self.backend.insert('favorites', {'user_id': user.id, 'plan_id': plan_id}, auth=ctx.auth)
            now_favorite = True
        if not result.ok:
            logger.error('Favorite toggle failed for plan %s: %s', plan_id, result.error)
            raise RemoteError(f'Updating favorites failed: {result.error}')

        with ctx.lock:
            favorites = [pid for pid in user.favorites if pid != plan_id]
            if now_favorite:
                favorites.append(plan_id)
            user.favorites = favorites
        return now_favorite

    def list_plans(self, ctx) -> List[HousePlan]:
        if not ctx.is_authenticated:
            raise AuthenticationRequired()
        ids = self.plan_ids(ctx.user.id, auth=ctx.auth)
        if not ids:
            return []
        result = self.backend.select('house_plans', [in_('id', ids)], auth=ctx.auth)
        if not result.ok:
            raise RemoteError(f'Loading favorite plans failed: {result.error}')
        return [HousePlan.from_record(row) for row in result.data or []]
