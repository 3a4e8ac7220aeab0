from __future__ import annotations


class Role:
    """Account roles.

    Professionals and admins may edit plan prices.
    """

    VISITOR = 'visitor'
    PROFESSIONAL = 'professional'
    ADMIN = 'admin'

    ALL = (VISITOR, PROFESSIONAL, ADMIN)
    PRICE_EDITORS = (PROFESSIONAL, ADMIN)


class AuthState:
    """Per-session authentication state."""

    UNAUTHENTICATED = 'unauthenticated'
    SIGN_UP_PENDING = 'sign_up_pending'
    AWAITING_VERIFICATION = 'awaiting_verification'
    SIGNING_IN = 'signing_in'
    ACTIVE = 'active'

    ALL = (UNAUTHENTICATED, SIGN_UP_PENDING, AWAITING_VERIFICATION, SIGNING_IN, ACTIVE)


ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    AuthState.UNAUTHENTICATED: {AuthState.SIGN_UP_PENDING, AuthState.SIGNING_IN},
    AuthState.SIGN_UP_PENDING: {AuthState.AWAITING_VERIFICATION, AuthState.UNAUTHENTICATED},
    AuthState.AWAITING_VERIFICATION: {
        AuthState.ACTIVE,
        AuthState.UNAUTHENTICATED,
        AuthState.SIGN_UP_PENDING,
        AuthState.SIGNING_IN,
    },
    AuthState.SIGNING_IN: {AuthState.ACTIVE, AuthState.UNAUTHENTICATED},
    AuthState.ACTIVE: {AuthState.UNAUTHENTICATED},
}


def can_transition(from_state: str, to_state: str) -> bool:
    return to_state in ALLOWED_TRANSITIONS.get(from_state, set())
