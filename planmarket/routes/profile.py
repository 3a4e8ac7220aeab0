"""
Profile Blueprint - Signed-in User Routes

Dashboard, favorite plans and saved searches. Every route requires an
active session.
"""

from flask import Blueprint, jsonify
from flask_login import login_required

from planmarket.forms import SavedSearchForm
from planmarket.services import get_services
from planmarket.session import current_context

profile_bp = Blueprint('profile', __name__)


@profile_bp.route('')
@profile_bp.route('/')
@login_required
def dashboard():
    services = get_services()
    ctx = current_context()
    favorites = services.favorites.list_plans(ctx)
    searches = services.saved_searches.list_searches(ctx)
    return jsonify({
        'user': ctx.user.to_dict(),
        'can_edit_price': ctx.user.can_edit_price,
        'favorites': [plan.to_dict() for plan in favorites],
        'saved_searches': [saved.to_dict() for saved in searches],
    })


@profile_bp.route('/favorites')
@login_required
def favorites():
    plans = get_services().favorites.list_plans(current_context())
    return jsonify({'favorites': [plan.to_dict() for plan in plans]})


@profile_bp.route('/searches')
@login_required
def list_searches():
    searches = get_services().saved_searches.list_searches(current_context())
    return jsonify({'saved_searches': [saved.to_dict() for saved in searches]})


@profile_bp.route('/searches', methods=['POST'])
@login_required
def save_search():
    """Save the session's current filters under a name."""
    form = SavedSearchForm().validate_or_raise()
    saved = get_services().saved_searches.save(current_context(), form.name.data)
    return jsonify({'saved_search': saved.to_dict()}), 201


@profile_bp.route('/searches/<search_id>', methods=['DELETE'])
@login_required
def delete_search(search_id):
    get_services().saved_searches.delete(current_context(), search_id)
    return jsonify({'deleted': search_id})


@profile_bp.route('/searches/<search_id>/apply', methods=['POST'])
@login_required
def apply_search(search_id):
    services = get_services()
    ctx = current_context()
    saved, plans = services.saved_searches.apply(ctx, search_id, services.search)
    return jsonify({
        'saved_search': saved.to_dict(),
        'filters': ctx.filters.to_dict(),
        'count': len(plans),
        'results': [plan.to_dict() for plan in plans],
    })
