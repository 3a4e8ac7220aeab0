"""
Authentication Blueprint - Account Routes

This blueprint handles account access:
- Sign-up with an emailed one-time code
- Code verification
- Sign-in / Sign-out
- Password strength helpers
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_user, logout_user

from planmarket.domain.passwords import check_password, generate_password
from planmarket.errors import ValidationError
from planmarket.extensions import limiter
from planmarket.forms import SignInForm, SignUpForm, VerificationForm
from planmarket.services import get_services
from planmarket.session import SessionUser, current_context

# Create Blueprint
auth_bp = Blueprint('auth', __name__)


def _auth_rate_limit():
    return current_app.config.get('AUTH_RATE_LIMIT', '10 per minute')


@auth_bp.route('/state')
def state():
    """Auth state of the current session."""
    return jsonify(current_context().to_dict())


@auth_bp.route('/sign-up', methods=['POST'])
@limiter.limit(_auth_rate_limit)
def sign_up():
    form = SignUpForm().validate_or_raise()
    outcome = get_services().auth.sign_up(
        current_context(),
        form.email.data,
        form.password.data,
        form.role.data or 'visitor',
    )
    return jsonify(outcome.to_dict()), 201


@auth_bp.route('/verify', methods=['POST'])
@limiter.limit(_auth_rate_limit)
def verify():
    """Check the emailed code, sent either whole or as six digit boxes."""
    form = VerificationForm().validate_or_raise()
    digits = None
    if request.is_json:
        payload = request.get_json(silent=True) or {}
        digits = payload.get('digits') if isinstance(payload, dict) else None
        if digits is not None and not isinstance(digits, list):
            raise ValidationError('digits must be a list of single characters.')

    ctx = current_context()
    outcome = get_services().auth.verify(ctx, code=form.code.data or None, digits=digits)
    login_user(SessionUser(outcome.user))
    return jsonify(outcome.to_dict())


@auth_bp.route('/sign-in', methods=['POST'])
@limiter.limit(_auth_rate_limit)
def sign_in():
    form = SignInForm().validate_or_raise()
    ctx = current_context()
    user = get_services().auth.sign_in(ctx, form.email.data, form.password.data)
    login_user(SessionUser(user))
    return jsonify({'state': ctx.state, 'user': user.to_dict()})


@auth_bp.route('/sign-out', methods=['POST'])
def sign_out():
    ctx = current_context()
    get_services().auth.sign_out(ctx)
    logout_user()
    return jsonify({'state': ctx.state})


@auth_bp.route('/password/generate')
def password_generate():
    password = generate_password()
    return jsonify({'password': password, 'checks': check_password(password).to_dict()})


@auth_bp.route('/password/check', methods=['POST'])
def password_check():
    payload = request.get_json(silent=True) if request.is_json else request.form
    password = (payload or {}).get('password') or ''
    return jsonify(check_password(password).to_dict())
