"""
Remote data service adapters.

``build_backend`` and ``build_dispatcher`` pick the adapters named by the
``BACKEND`` and ``EMAIL_DISPATCH`` configuration keys.
"""

from planmarket.backends.base import (
    AuthSession,
    Backend,
    EmailDispatcher,
    Predicate,
    Result,
    eq,
    gte,
    in_,
    lte,
    order,
)


def _supabase_client(config):
    from planmarket.backends.supabase import SupabaseClient

    return SupabaseClient(
        config.get('SUPABASE_URL'),
        config.get('SUPABASE_ANON_KEY'),
        timeout=float(config.get('SUPABASE_TIMEOUT', 10)),
    )


def build_backend(config) -> Backend:
    kind = (config.get('BACKEND') or 'local').lower()
    if kind == 'supabase':
        from planmarket.backends.supabase import SupabaseBackend

        return SupabaseBackend(_supabase_client(config))
    if kind == 'local':
        from planmarket.backends.local import LocalBackend

        return LocalBackend(session_ttl_seconds=int(config.get('AUTH_SESSION_TTL', 3600)))
    raise ValueError(f'Unknown BACKEND: {kind}')


def build_dispatcher(config) -> EmailDispatcher:
    kind = (config.get('EMAIL_DISPATCH') or 'mail').lower()
    if kind == 'function':
        from planmarket.backends.supabase import FunctionEmailDispatcher

        return FunctionEmailDispatcher(_supabase_client(config))
    if kind == 'mail':
        from planmarket.backends.mail import MailEmailDispatcher

        return MailEmailDispatcher()
    raise ValueError(f'Unknown EMAIL_DISPATCH: {kind}')


__all__ = [
    'AuthSession',
    'Backend',
    'EmailDispatcher',
    'Predicate',
    'Result',
    'build_backend',
    'build_dispatcher',
    'eq',
    'gte',
    'in_',
    'lte',
    'order',
]
