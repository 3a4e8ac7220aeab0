"""Plan detail: plan lookup, add-on services, quotes and price edits."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import FrozenSet, List

from planmarket.backends.base import Backend, eq, first_row, order
from planmarket.domain.pricing import calculate_total, toggle_service
from planmarket.domain.records import AdditionalService, HousePlan
from planmarket.errors import (
    AuthenticationRequired,
    NotFoundError,
    PermissionDeniedError,
    RemoteError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanQuote:
    plan: HousePlan
    services: List[AdditionalService]
    selected: FrozenSet[str]

    @property
    def total(self) -> float:
        return calculate_total(self.plan, self.services, self.selected)

    def to_dict(self) -> dict:
        return {
            'plan': self.plan.to_dict(),
            'services': [service.to_dict() for service in self.services],
            'selected_services': sorted(self.selected),
            'base_price': self.plan.price,
            'total': self.total,
        }


class Catalog:
    def __init__(self, backend: Backend):
        self.backend = backend

    def get_plan(self, plan_id: str) -> HousePlan:
        result = self.backend.select('house_plans', [eq('id', plan_id)])
        self._checked(result, 'Loading the plan')
        row = first_row(result)
        if row is None:
            raise NotFoundError('Plan not found.')
        return HousePlan.from_record(row)

    def list_services(self) -> List[AdditionalService]:
        """Every add-on service, default ones first."""
        result = self.backend.select('additional_services', [order('is_default', descending=True)])
        rows = self._checked(result, 'Loading services') or []
        return [AdditionalService.from_record(row) for row in rows]

    def quote(self, ctx, plan_id: str) -> PlanQuote:
        plan = self.get_plan(plan_id)
        services = self.list_services()
        return PlanQuote(plan=plan, services=services, selected=ctx.selection_for(plan.id, services))

    def toggle_service(self, ctx, plan_id: str, service_id: str) -> PlanQuote:
        quote = self.quote(ctx, plan_id)
        if service_id not in {service.id for service in quote.services}:
            raise ValidationError(f'Unknown service: {service_id}')
        with ctx.lock:
            selection = toggle_service(ctx.selection_for(quote.plan.id, quote.services), service_id)
            ctx.set_selection(quote.plan.id, selection)
        return PlanQuote(plan=quote.plan, services=quote.services, selected=selection)

    def update_price(self, ctx, plan_id: str, new_price) -> HousePlan:
        """Change a plan's listed price (professionals and admins only)."""
        if not ctx.is_authenticated:
            raise AuthenticationRequired()
        if not ctx.user.can_edit_price:
            raise PermissionDeniedError('Only professionals and admins can change prices.')
        try:
            price = float(new_price)
        except (TypeError, ValueError):
            raise ValidationError('Price must be a number.')
        if not math.isfinite(price) or price < 0:
            raise ValidationError('Price must be zero or more.')

        plan = self.get_plan(plan_id)
        result = self.backend.update('house_plans', {'price': price}, [eq('id', plan.id)], auth=ctx.auth)
        rows = self._checked(result, 'Updating the price')
        if not rows:
            # Row-level security filters the update instead of failing it.
            logger.warning('Price update of plan %s by %s changed no rows', plan.id, ctx.user.id)
            raise PermissionDeniedError('The price of this plan could not be changed.')
        logger.info('Price of plan %s changed from %s to %s by %s', plan.id, plan.price, price, ctx.user.id)
        return HousePlan.from_record(rows[0])

    @staticmethod
    def _checked(result, action):
        if not result.ok:
            logger.error('%s failed: %s', action, result.error)
            raise RemoteError(f'{action} failed: {result.error}')
        return result.data
