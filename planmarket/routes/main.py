"""
Main Blueprint - Public Routes

This blueprint handles catalog routes:
- Plan search with session-scoped filters
- Plan detail with add-on services and the price total
- Favorites toggle and role-gated price edits
"""

from flask import Blueprint, jsonify, request

from planmarket.domain.filters import CAMEL_CASE_KEYS, SearchFilters, coerce_filter_values
from planmarket.errors import ValidationError
from planmarket.forms import PriceUpdateForm
from planmarket.services import get_services
from planmarket.session import current_context

# Create Blueprint
main_bp = Blueprint('main', __name__)

FILTER_KEYS = set(CAMEL_CASE_KEYS) | set(CAMEL_CASE_KEYS.values())


def _request_payload():
    """JSON body, or form/query values, as a plain dict."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ValidationError('Expected a JSON object.')
        return payload
    source = request.form if request.form else request.args
    return {key: source.get(key) for key in source.keys()}


def _search_response(ctx, plans):
    return jsonify({
        'filters': ctx.filters.to_dict(),
        'count': len(plans),
        'results': [plan.to_dict() for plan in plans],
    })


@main_bp.route('/search')
def search():
    """Run the session's filters; query arguments are merged in first."""
    services = get_services()
    ctx = current_context()
    update = {key: request.args.get(key) for key in request.args.keys() if key in FILTER_KEYS}
    if update:
        plans = services.search.update_filters(ctx, coerce_filter_values(update))
    else:
        plans = services.search.search(ctx)
    return _search_response(ctx, plans)


@main_bp.route('/search/filters', methods=['POST', 'PATCH'])
def update_filters():
    """Merge a partial filter update and search again."""
    services = get_services()
    ctx = current_context()
    plans = services.search.update_filters(ctx, coerce_filter_values(_request_payload()))
    return _search_response(ctx, plans)


@main_bp.route('/search/filters', methods=['DELETE'])
def reset_filters():
    services = get_services()
    ctx = current_context()
    plans = services.search.replace_filters(ctx, SearchFilters())
    return _search_response(ctx, plans)


@main_bp.route('/search/results')
def current_results():
    """Last applied results, without querying again."""
    ctx = current_context()
    return _search_response(ctx, list(ctx.results))


@main_bp.route('/services')
def list_services():
    services = get_services()
    return jsonify({'services': [service.to_dict() for service in services.catalog.list_services()]})


@main_bp.route('/plans/<plan_id>')
def plan_detail(plan_id):
    """Plan, add-on services, current selection and total."""
    services = get_services()
    ctx = current_context()
    quote = services.catalog.quote(ctx, plan_id)
    payload = quote.to_dict()
    payload['is_favorite'] = services.favorites.is_favorite(ctx, quote.plan.id)
    payload['can_edit_price'] = bool(ctx.is_authenticated and ctx.user.can_edit_price)
    return jsonify(payload)


@main_bp.route('/plans/<plan_id>/services/<service_id>/toggle', methods=['POST'])
def toggle_service(plan_id, service_id):
    services = get_services()
    quote = services.catalog.toggle_service(current_context(), plan_id, service_id)
    return jsonify(quote.to_dict())


@main_bp.route('/plans/<plan_id>/price', methods=['PATCH', 'POST'])
def update_price(plan_id):
    services = get_services()
    form = PriceUpdateForm().validate_or_raise()
    plan = services.catalog.update_price(current_context(), plan_id, form.price.data)
    return jsonify({'plan': plan.to_dict()})


@main_bp.route('/plans/<plan_id>/favorite', methods=['POST'])
def toggle_favorite(plan_id):
    services = get_services()
    ctx = current_context()
    plan = services.catalog.get_plan(plan_id)
    return jsonify({'plan_id': plan.id, 'is_favorite': services.favorites.toggle(ctx, plan.id)})
