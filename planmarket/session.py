"""
Per-session application state.

Each browser session owns one :class:`SessionContext`: the auth state, the
pending verification code, the current filters and results, and the
selected add-on services per plan. Contexts live server-side in a sliding
TTL cache keyed by a random id kept in the signed Flask session cookie, so
the verification code never leaves process memory.
"""

from __future__ import annotations

import itertools
import logging
import secrets
from dataclasses import dataclass, field
from threading import RLock
from typing import Dict, FrozenSet, Iterable, List, Optional

from flask import current_app, session
from flask_login import UserMixin

from planmarket.backends.base import AuthSession
from planmarket.domain.enums import AuthState, can_transition
from planmarket.domain.filters import SearchFilters
from planmarket.domain.pricing import default_selection
from planmarket.domain.records import AdditionalService, HousePlan, UserProfile
from planmarket.errors import ValidationError
from planmarket.extensions import login_manager
from planmarket.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

SESSION_KEY = 'ctx'


@dataclass
class PendingVerification:
    email: str
    role: str
    code: str = field(repr=False)


class SessionContext:
    def __init__(self, key: str):
        self.key = key
        self.lock = RLock()
        self.filters = SearchFilters()
        self.results: List[HousePlan] = []
        self.selected_services: Dict[str, FrozenSet[str]] = {}
        self._tickets = itertools.count(1)
        self._applied_ticket = 0
        self.reset_auth()

    def reset_auth(self) -> None:
        self.state = AuthState.UNAUTHENTICATED
        self.auth: Optional[AuthSession] = None
        self.user: Optional[UserProfile] = None
        self.pending: Optional[PendingVerification] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == AuthState.ACTIVE and self.user is not None

    def transition(self, to_state: str) -> None:
        if to_state == self.state:
            return
        if not can_transition(self.state, to_state):
            raise ValidationError(f'Cannot go from {self.state} to {to_state}. Sign out first.')
        logger.debug('Session %s: %s -> %s', self.key[:8], self.state, to_state)
        self.state = to_state

    # Search results, last issued wins

    def issue_search_ticket(self) -> int:
        with self.lock:
            return next(self._tickets)

    def apply_results(self, ticket: int, plans: Iterable[HousePlan]) -> bool:
        """Store ``plans`` unless a newer search already stored its results."""
        with self.lock:
            if ticket <= self._applied_ticket:
                return False
            self._applied_ticket = ticket
            self.results = list(plans)
            return True

    # Add-on service selection

    def selection_for(self, plan_id: str, services: Iterable[AdditionalService]) -> FrozenSet[str]:
        with self.lock:
            if plan_id not in self.selected_services:
                self.selected_services[plan_id] = default_selection(services)
            return self.selected_services[plan_id]

    def set_selection(self, plan_id: str, selection: Iterable[str]) -> None:
        with self.lock:
            self.selected_services[plan_id] = frozenset(selection)

    def to_dict(self) -> dict:
        return {
            'state': self.state,
            'user': self.user.to_dict() if self.user else None,
            'pending_email': self.pending.email if self.pending else None,
            'filters': self.filters.to_dict(),
        }


class SessionStore:
    def __init__(self, ttl_seconds: int = 1800, max_items: int = 10000):
        self._contexts: TTLCache[str, SessionContext] = TTLCache(
            ttl_seconds=ttl_seconds,
            max_items=max_items,
            sliding=True,
        )

    def get(self, key: Optional[str]) -> Optional[SessionContext]:
        if not key:
            return None
        return self._contexts.get(key)

    def create(self) -> SessionContext:
        context = SessionContext(secrets.token_urlsafe(24))
        self._contexts.set(context.key, context)
        return context


def current_context() -> SessionContext:
    """Context of the current request, created on first use."""
    store: SessionStore = current_app.extensions['planmarket'].sessions
    context = store.get(session.get(SESSION_KEY))
    if context is None:
        context = store.create()
        session[SESSION_KEY] = context.key
        session.permanent = True
    return context


class SessionUser(UserMixin):
    """Flask-Login view of the signed-in profile."""

    def __init__(self, profile: UserProfile):
        self.profile = profile

    def get_id(self):
        return self.profile.id


@login_manager.user_loader
def load_user(user_id):
    """Signed-in user of the current session context, if it matches."""
    if user_id is None:
        return None
    context = current_context()
    if context.is_authenticated and context.user.id == user_id:
        return SessionUser(context.user)
    return None
