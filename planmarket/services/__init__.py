"""
Application services.

Each service wraps the remote backend for one user-facing concern. They
are built once per app in :func:`init_services` and reached from views
through :func:`get_services`.
"""

from dataclasses import dataclass

from flask import current_app

from planmarket.backends import build_backend, build_dispatcher
from planmarket.backends.base import Backend, EmailDispatcher
from planmarket.services.auth_flow import AuthFlow
from planmarket.services.catalog import Catalog
from planmarket.services.favorites import Favorites
from planmarket.services.saved_searches import SavedSearches
from planmarket.services.search import SearchExecutor
from planmarket.session import SessionStore


@dataclass
class Services:
    backend: Backend
    dispatcher: EmailDispatcher
    sessions: SessionStore
    search: SearchExecutor
    catalog: Catalog
    favorites: Favorites
    saved_searches: SavedSearches
    auth: AuthFlow


def init_services(app, backend=None, dispatcher=None) -> Services:
    config = app.config
    backend = backend or build_backend(config)
    dispatcher = dispatcher or build_dispatcher(config)
    services = Services(
        backend=backend,
        dispatcher=dispatcher,
        sessions=SessionStore(ttl_seconds=int(config.get('SESSION_CONTEXT_TTL', 1800))),
        search=SearchExecutor(backend),
        catalog=Catalog(backend),
        favorites=Favorites(backend),
        saved_searches=SavedSearches(backend),
        auth=AuthFlow(
            backend,
            dispatcher,
            redirect_url=config.get('VERIFICATION_REDIRECT_URL'),
            profile_url=config.get('PROFILE_URL', '/profile'),
            redirect_delay=float(config.get('VERIFICATION_REDIRECT_DELAY', 2.0)),
        ),
    )
    app.extensions['planmarket'] = services
    app.logger.info('Services ready (backend=%s, email=%s)', backend.name, dispatcher.__class__.__name__)
    return services


def get_services() -> Services:
    return current_app.extensions['planmarket']
