"""
Remote data service contracts.

Every adapter call returns a :class:`Result` carrying either data or an
error message, mirroring the ``{data, error}`` envelope of the hosted
service. Adapters never raise for remote failures; the services decide
whether a failed result aborts the current user action.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional


OPERATORS = ('eq', 'gte', 'lte', 'in', 'order')


@dataclass(frozen=True)
class Predicate:
    """One ``(field, operator, value)`` query term.

    ``order`` takes ``'asc'`` or ``'desc'`` as its value.
    """

    field: str
    op: str
    value: Any = None

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f'Unsupported operator: {self.op}')


def eq(field_name: str, value: Any) -> Predicate:
    return Predicate(field_name, 'eq', value)


def gte(field_name: str, value: Any) -> Predicate:
    return Predicate(field_name, 'gte', value)


def lte(field_name: str, value: Any) -> Predicate:
    return Predicate(field_name, 'lte', value)


def in_(field_name: str, values: Iterable[Any]) -> Predicate:
    return Predicate(field_name, 'in', tuple(values))


def order(field_name: str, descending: bool = False) -> Predicate:
    return Predicate(field_name, 'order', 'desc' if descending else 'asc')


@dataclass(frozen=True)
class Result:
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: Any) -> 'Result':
        return cls(data=None, error=str(error) or error.__class__.__name__)


@dataclass
class AuthSession:
    """Authenticated identity issued by the auth service."""

    user_id: str
    email: str
    access_token: str
    refresh_token: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)


class Backend(ABC):
    """Query and auth interface of the hosted backend.

    Query methods accept the caller's ``auth`` session so row-level
    security applies; without it the anonymous key is used.
    """

    name = 'backend'

    # Query interface

    @abstractmethod
    def select(self, table: str, predicates: Iterable[Predicate] = (), auth: Optional[AuthSession] = None) -> Result:
        """Rows of ``table`` matching every predicate (list of dicts)."""

    @abstractmethod
    def insert(self, table: str, row: Mapping[str, Any], auth: Optional[AuthSession] = None) -> Result:
        """Insert one row; data is the stored row."""

    @abstractmethod
    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        predicates: Iterable[Predicate],
        auth: Optional[AuthSession] = None,
    ) -> Result:
        """Update matching rows; data is the list of updated rows."""

    @abstractmethod
    def delete(self, table: str, predicates: Iterable[Predicate], auth: Optional[AuthSession] = None) -> Result:
        """Delete matching rows."""

    # Auth interface

    @abstractmethod
    def sign_up(self, email: str, password: str, metadata: Mapping[str, Any], redirect_url: Optional[str] = None) -> Result:
        """Create an unverified account; data is an AuthSession or None."""

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> Result:
        """Authenticate; data is an AuthSession."""

    @abstractmethod
    def get_session(self, auth: Optional[AuthSession]) -> Result:
        """Data is the still-valid AuthSession, or None when expired."""

    @abstractmethod
    def update_user(self, auth: AuthSession, metadata: Mapping[str, Any]) -> Result:
        """Merge ``metadata`` into the account's user metadata."""

    @abstractmethod
    def sign_out(self, auth: Optional[AuthSession]) -> Result:
        """Revoke the session."""


class EmailDispatcher(ABC):
    """Delivers verification codes by email."""

    @abstractmethod
    def send_verification(self, email: str, code: str, redirect_url: Optional[str]) -> Result:
        """Queue the verification email."""


def first_row(result: Result) -> Optional[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = result.data or []
    return rows[0] if rows else None
