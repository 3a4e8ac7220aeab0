from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from planmarket.errors import ValidationError


# Persisted saved searches use the camelCase keys of the web client.
CAMEL_CASE_KEYS = {
    'style': 'style',
    'min_bedrooms': 'minBedrooms',
    'max_bedrooms': 'maxBedrooms',
    'min_bathrooms': 'minBathrooms',
    'max_bathrooms': 'maxBathrooms',
    'min_floor_area': 'minFloorArea',
    'max_floor_area': 'maxFloorArea',
    'floors': 'floors',
    'garages': 'garages',
    'has_pool': 'hasPool',
    'min_budget': 'minBudget',
    'max_budget': 'maxBudget',
    'min_price': 'minPrice',
    'max_price': 'maxPrice',
}
SNAKE_CASE_KEYS = {camel: snake for snake, camel in CAMEL_CASE_KEYS.items()}

INT_FIELDS = ('min_bedrooms', 'max_bedrooms', 'floors', 'garages')
FLOAT_FIELDS = (
    'min_bathrooms',
    'max_bathrooms',
    'min_floor_area',
    'max_floor_area',
    'min_budget',
    'max_budget',
    'min_price',
    'max_price',
)

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


@dataclass(frozen=True)
class SearchFilters:
    """Sparse set of optional constraints on a house plan.

    ``None`` means "no constraint". Bounds are not cross-checked: a minimum
    above its maximum is legal and simply matches nothing.
    """

    style: Optional[str] = None
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_bathrooms: Optional[float] = None
    max_bathrooms: Optional[float] = None
    min_floor_area: Optional[float] = None
    max_floor_area: Optional[float] = None
    floors: Optional[int] = None
    garages: Optional[int] = None
    has_pool: Optional[bool] = None
    min_budget: Optional[float] = None
    max_budget: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    @classmethod
    def field_names(cls) -> tuple:
        return tuple(f.name for f in fields(cls))

    def merge(self, update: Mapping[str, Any]) -> 'SearchFilters':
        """Return a copy with only the fields named in ``update`` overwritten.

        Keys may be snake_case or camelCase. A key mapped to ``None`` clears
        that constraint.
        """
        changes = {}
        for key, value in update.items():
            name = _normalize_key(key)
            if name is None:
                raise ValidationError(f'Unknown search filter: {key}')
            changes[name] = value
        return replace(self, **changes)

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.field_names() if getattr(self, name) is not None}

    def to_record(self) -> Dict[str, Any]:
        """Sparse camelCase mapping, as stored in ``saved_searches.filters``."""
        return {CAMEL_CASE_KEYS[name]: value for name, value in self.to_dict().items()}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'SearchFilters':
        """Lenient constructor for persisted filters; unknown keys are dropped."""
        if not data:
            return cls()
        known = {key: value for key, value in data.items() if _normalize_key(key) is not None}
        return cls().merge(coerce_filter_values(known))


def _normalize_key(key: str) -> Optional[str]:
    if key in CAMEL_CASE_KEYS:
        return key
    return SNAKE_CASE_KEYS.get(key)


def _parse_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def _parse_number(value: Any, cast):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(',', '')
        if value == '':
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if cast is int else number


def coerce_filter_values(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Coerce raw (form or JSON) values to filter field types.

    Blank strings and unparsable numbers become ``None``. Keys that are
    not filter fields are reported as a validation error by ``merge``.
    """

    coerced = {}
    for key, raw in data.items():
        name = _normalize_key(key) or key
        if name in INT_FIELDS:
            coerced[name] = _parse_number(raw, int)
        elif name in FLOAT_FIELDS:
            coerced[name] = _parse_number(raw, float)
        elif name == 'has_pool':
            coerced[name] = _parse_bool(raw)
        elif name == 'style':
            text = (str(raw).strip() if raw is not None else '')
            coerced[name] = text or None
        else:
            coerced[name] = raw
    return coerced
