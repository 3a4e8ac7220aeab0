"""Price composition for a plan and its add-on services."""

from __future__ import annotations

from typing import AbstractSet, FrozenSet, Iterable, Optional

from planmarket.domain.records import AdditionalService, HousePlan


def default_selection(services: Iterable[AdditionalService]) -> FrozenSet[str]:
    """Ids of the services selected out of the box (``is_default``)."""
    return frozenset(service.id for service in services if service.is_default)


def toggle_service(selection: AbstractSet[str], service_id: str) -> FrozenSet[str]:
    """Add ``service_id`` when absent, remove it when present."""
    return frozenset(selection) ^ {service_id}


def services_total(services: Iterable[AdditionalService], selected: AbstractSet[str]) -> float:
    # Negative prices count as zero: a service never lowers the total.
    return sum(max(0.0, service.price) for service in services if service.id in selected)


def calculate_total(
    plan: Optional[HousePlan],
    services: Iterable[AdditionalService],
    selected: AbstractSet[str],
) -> float:
    """Base plan price plus the price of every selected service."""
    base_price = plan.price if plan is not None and plan.price else 0.0
    return base_price + services_total(services, selected)
