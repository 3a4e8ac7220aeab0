from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from planmarket.domain.enums import Role
from planmarket.domain.filters import SearchFilters


def _normalize_price(value: Any) -> Optional[float]:
    if value in (None, ''):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    normalized = _normalize_price(value)
    return default if normalized is None else normalized


def _as_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value)


def _display(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class HousePlan:
    id: str
    title: str = ''
    style: Optional[str] = None
    bedrooms: int = 0
    bathrooms: float = 0.0
    floor_area: float = 0.0
    floors: int = 1
    garages: int = 0
    has_pool: bool = False
    estimated_budget: Optional[float] = None
    price: float = 0.0
    description: str = ''
    images: Tuple[str, ...] = ()
    plans_2d: Tuple[str, ...] = ()
    model_3d: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'HousePlan':
        """Build a plan from a remote row.

        Accepts the camelCase spellings some rows were written with
        (``floorArea``, ``hasPool``...).
        """
        get = record.get
        return cls(
            id=str(get('id')),
            title=get('title') or '',
            style=get('style'),
            bedrooms=_as_int(get('bedrooms')),
            bathrooms=_as_float(get('bathrooms')),
            floor_area=_as_float(get('floor_area', get('floorArea'))),
            floors=_as_int(get('floors'), 1),
            garages=_as_int(get('garages', get('garage'))),
            has_pool=bool(get('has_pool', get('hasPool', False))),
            estimated_budget=_normalize_price(get('estimated_budget', get('estimatedBudget'))),
            price=_as_float(get('price')),
            description=get('description') or '',
            images=_as_tuple(get('images')),
            plans_2d=_as_tuple(get('plans_2d', get('plans2D'))),
            model_3d=get('model_3d', get('model3D')),
            created_at=str(get('created_at')) if get('created_at') is not None else None,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data['images'] = list(self.images)
        data['plans_2d'] = list(self.plans_2d)
        return data


@dataclass(frozen=True)
class AdditionalService:
    id: str
    name: str
    price: float = 0.0
    description: str = ''
    is_default: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'AdditionalService':
        get = record.get
        return cls(
            id=str(get('id')),
            name=get('name') or '',
            price=_as_float(get('price')),
            description=get('description') or '',
            is_default=bool(get('is_default', get('isDefault', False))),
        )

    @property
    def is_included(self) -> bool:
        """A zero price means the service comes at no extra cost."""
        return self.price == 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data['is_included'] = self.is_included
        return data


@dataclass
class UserProfile:
    id: str
    email: str
    first_name: str = ''
    last_name: str = ''
    role: str = Role.VISITOR
    favorites: List[str] = field(default_factory=list)
    verified: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], favorites=None) -> 'UserProfile':
        get = record.get
        role = get('role')
        return cls(
            id=str(get('id')),
            email=get('email') or '',
            first_name=get('first_name') or '',
            last_name=get('last_name') or '',
            role=role if role in Role.ALL else Role.VISITOR,
            favorites=list(favorites or []),
            verified=bool(get('verified')),
            created_at=str(get('created_at')) if get('created_at') is not None else None,
        )

    @property
    def can_edit_price(self) -> bool:
        return self.role in Role.PRICE_EDITORS

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SavedSearch:
    id: str
    user_id: str
    name: str
    filters: SearchFilters
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'SavedSearch':
        get = record.get
        return cls(
            id=str(get('id')),
            user_id=str(get('user_id')),
            name=get('name') or '',
            filters=SearchFilters.from_dict(get('filters') or {}),
            created_at=str(get('created_at')) if get('created_at') is not None else None,
        )

    def summary(self) -> str:
        """One-line description such as ``minBedrooms: 3 • maxPrice: 200000``."""
        return ' • '.join(f'{key}: {_display(value)}' for key, value in self.filters.to_record().items())

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'filters': self.filters.to_record(),
            'summary': self.summary(),
            'created_at': self.created_at,
        }
