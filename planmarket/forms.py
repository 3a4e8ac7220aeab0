"""
WTForms Form Classes for the PlanMarket API

Forms read either form-encoded bodies or JSON bodies (Flask-WTF wraps
``request.get_json()``). The JSON API relies on SameSite session cookies,
so CSRF tokens are disabled on these forms.
"""

from flask_wtf import FlaskForm
from wtforms import FloatField, PasswordField, SelectField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional, StopValidation

from planmarket.domain.enums import Role
from planmarket.errors import ValidationError


class ApiForm(FlaskForm):
    class Meta:
        csrf = False

    def validate_or_raise(self):
        """Validate, raising the first error as a ValidationError."""
        if self.validate():
            return self
        for field_errors in self.errors.values():
            if field_errors:
                raise ValidationError(field_errors[0])
        raise ValidationError()


class SignUpForm(ApiForm):
    """Account creation form"""

    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Length(max=255, message='Must be 255 characters or less'),
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required'),
    ])
    role = SelectField(
        'Account type',
        choices=[(role, role.capitalize()) for role in Role.ALL],
        default=Role.VISITOR,
        validate_choice=False,
    )


class SignInForm(ApiForm):
    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Length(max=255, message='Must be 255 characters or less'),
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required'),
    ])


class VerificationForm(ApiForm):
    code = StringField('Verification code', validators=[
        Optional(),
        Length(max=64),
    ])


def _value_present(form, field):
    # JSON numbers reach raw_data unconverted; 0 is a valid price.
    if not field.raw_data or field.raw_data[0] in (None, ''):
        raise StopValidation('Price is required')


class PriceUpdateForm(ApiForm):
    price = FloatField('Price', validators=[
        _value_present,
        NumberRange(min=0, message='Price must be zero or more'),
    ])


class SavedSearchForm(ApiForm):
    name = StringField('Name', validators=[
        Optional(),
        Length(max=120, message='Name must be 120 characters or less'),
    ])
