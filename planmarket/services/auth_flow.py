"""
Sign-up, email verification and sign-in.

State machine (per session context)::

    unauthenticated -> sign_up_pending -> awaiting_verification -> active
    unauthenticated -> signing_in -> active

The one-time code is compared in this process against the copy held in the
session context. It is also sent to the hosted auth service as account
metadata, as the existing accounts expect.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from planmarket.backends.base import Backend, EmailDispatcher, eq, first_row
from planmarket.domain.enums import AuthState, Role
from planmarket.domain.passwords import PasswordChecks, check_password
from planmarket.domain.records import UserProfile
from planmarket.domain.verification import CodeEntry, generate_code, is_valid_email
from planmarket.errors import (
    RemoteError,
    SessionExpiredError,
    UnverifiedAccountError,
    ValidationError,
    VerificationCodeMismatch,
)
from planmarket.session import PendingVerification

logger = logging.getLogger(__name__)


class SignInFailed(RemoteError):
    """Incorrect email or password."""

    status_code = 401
    code = 'sign_in_failed'


def _mask(email: str) -> str:
    local, _, domain = (email or '').partition('@')
    return f'{local[:1]}***@{domain}' if domain else '***'


@dataclass(frozen=True)
class SignUpOutcome:
    email: str
    password_checks: PasswordChecks
    message: str = 'A verification code has been sent to your email address.'

    def to_dict(self) -> dict:
        return {
            'state': AuthState.AWAITING_VERIFICATION,
            'email': self.email,
            'message': self.message,
            'password_checks': self.password_checks.to_dict(),
        }


@dataclass(frozen=True)
class VerificationOutcome:
    user: UserProfile
    redirect_to: str
    redirect_delay: float
    message: str = 'Your account has been verified!'

    def to_dict(self) -> dict:
        return {
            'state': AuthState.ACTIVE,
            'message': self.message,
            'user': self.user.to_dict(),
            'redirect': self.redirect_to,
            'redirect_delay_ms': int(self.redirect_delay * 1000),
        }


class AuthFlow:
    def __init__(
        self,
        backend: Backend,
        dispatcher: EmailDispatcher,
        *,
        redirect_url: Optional[str] = None,
        profile_url: str = '/profile',
        redirect_delay: float = 2.0,
        code_factory: Callable[[], str] = generate_code,
    ):
        self.backend = backend
        self.dispatcher = dispatcher
        self.redirect_url = redirect_url
        self.profile_url = profile_url
        self.redirect_delay = redirect_delay
        self.code_factory = code_factory

    def sign_up(self, ctx, email: str, password: str, role: str = Role.VISITOR) -> SignUpOutcome:
        """Create an unverified account and email it a one-time code.

        Validation problems are reported before anything is sent to the
        remote service. Any remote failure leaves the session signed out.
        """
        email = (email or '').strip()
        if not is_valid_email(email):
            raise ValidationError('Please enter a valid email address.')
        if role not in Role.ALL:
            raise ValidationError('Unknown account type.')
        if not password:
            raise ValidationError('Password is required.')

        with ctx.lock:
            ctx.transition(AuthState.SIGN_UP_PENDING)

        code = self.code_factory()
        try:
            created = self.backend.sign_up(
                email,
                password,
                {'role': role, 'verification_code': code},
                self.redirect_url,
            )
            if not created.ok:
                raise RemoteError(created.error)
            sent = self.dispatcher.send_verification(email, code, self.redirect_url)
            if not sent.ok:
                raise RemoteError(f'Could not send the verification code: {sent.error}')
        except RemoteError as exc:
            logger.error('Sign-up failed for %s: %s', _mask(email), exc)
            with ctx.lock:
                ctx.reset_auth()
            raise

        with ctx.lock:
            ctx.auth = created.data
            ctx.pending = PendingVerification(email=email, role=role, code=code)
            ctx.transition(AuthState.AWAITING_VERIFICATION)
        logger.info('Verification code sent to %s', _mask(email))
        return SignUpOutcome(email=email, password_checks=check_password(password))

    def verify(self, ctx, code: Optional[str] = None, digits: Optional[List[str]] = None) -> VerificationOutcome:
        """Check the entered code and activate the account.

        A matching code is consumed; if a remote step then fails it is put
        back so the user can retry.
        """
        entry = CodeEntry.from_input(code=code, digits=digits)
        if not entry.is_complete:
            raise ValidationError('Enter the 6-digit code you received by email.')

        with ctx.lock:
            pending = ctx.pending
            if ctx.state != AuthState.AWAITING_VERIFICATION or pending is None:
                raise ValidationError('No verification in progress. Please sign up first.')
            if not hmac.compare_digest(entry.value, pending.code):
                logger.info('Wrong verification code for %s', _mask(pending.email))
                raise VerificationCodeMismatch()
            ctx.pending = None

        try:
            current = self.backend.get_session(ctx.auth)
            if not current.ok:
                raise RemoteError(current.error)
            auth = current.data
            if auth is None:
                logger.info('Session expired before verification of %s', _mask(pending.email))
                with ctx.lock:
                    ctx.reset_auth()
                raise SessionExpiredError()

            updated = self.backend.update_user(auth, {'verified': True})
            if not updated.ok:
                raise RemoteError(updated.error)

            profile_row = self._store_profile(auth, {
                'id': auth.user_id,
                'email': auth.email or pending.email,
                'role': pending.role,
                'verified': True,
            })
        except RemoteError as exc:
            logger.error('Verification failed for %s: %s', _mask(pending.email), exc)
            with ctx.lock:
                if ctx.state == AuthState.AWAITING_VERIFICATION and ctx.pending is None:
                    ctx.pending = pending
            raise

        user = UserProfile.from_record(profile_row)
        with ctx.lock:
            ctx.auth = auth
            ctx.user = user
            ctx.transition(AuthState.ACTIVE)
        logger.info('Account %s verified', user.id)
        return VerificationOutcome(user=user, redirect_to=self.profile_url, redirect_delay=self.redirect_delay)

    def _store_profile(self, auth, profile_row):
        """Insert the profile row, or reuse the one a lost response already wrote."""
        existing = self.backend.select('users', [eq('id', auth.user_id)], auth=auth)
        if not existing.ok:
            raise RemoteError(existing.error)
        row = first_row(existing)
        if row is None:
            inserted = self.backend.insert('users', profile_row, auth=auth)
            if not inserted.ok:
                raise RemoteError(inserted.error)
            return inserted.data or profile_row
        if not row.get('verified'):
            updated = self.backend.update('users', {'verified': True}, [eq('id', auth.user_id)], auth=auth)
            if not updated.ok:
                raise RemoteError(updated.error)
            row = {**row, 'verified': True}
        return row

    def sign_in(self, ctx, email: str, password: str) -> UserProfile:
        email = (email or '').strip()
        if not email or not password:
            raise ValidationError('Email and password are required.')

        with ctx.lock:
            ctx.transition(AuthState.SIGNING_IN)

        signed_in = self.backend.sign_in_with_password(email, password)
        if not signed_in.ok:
            logger.info('Sign-in refused for %s: %s', _mask(email), signed_in.error)
            with ctx.lock:
                ctx.reset_auth()
            raise SignInFailed(signed_in.error or SignInFailed.__doc__)
        auth = signed_in.data

        profile = self.backend.select('users', [eq('id', auth.user_id)], auth=auth)
        favorites = self.backend.select('favorites', [eq('user_id', auth.user_id)], auth=auth)
        for result in (profile, favorites):
            if not result.ok:
                self.backend.sign_out(auth)
                with ctx.lock:
                    ctx.reset_auth()
                raise RemoteError(result.error)

        row = first_row(profile)
        if row is None or not row.get('verified'):
            self.backend.sign_out(auth)
            with ctx.lock:
                ctx.reset_auth()
            logger.info('Unverified account %s tried to sign in', _mask(email))
            raise UnverifiedAccountError()

        user = UserProfile.from_record(row, favorites=[str(fav['plan_id']) for fav in favorites.data or []])
        with ctx.lock:
            ctx.auth = auth
            ctx.user = user
            ctx.transition(AuthState.ACTIVE)
        logger.info('User %s signed in', user.id)
        return user

    def sign_out(self, ctx) -> None:
        result = self.backend.sign_out(ctx.auth)
        if not result.ok:
            logger.warning('Remote sign-out failed: %s', result.error)
        with ctx.lock:
            ctx.reset_auth()
