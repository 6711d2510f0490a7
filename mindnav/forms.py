"""
WTForms Form Classes for Mind Navigator

This module defines the forms used to validate request bodies. JSON bodies
are flattened into form data by :func:`request_formdata` so the same
validators serve the API.
"""

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import StringField, PasswordField, DecimalField, IntegerField, BooleanField
from wtforms.validators import DataRequired, InputRequired, Email, Length, ValidationError, Optional, NumberRange
from mindnav.models import User


class LoginForm(FlaskForm):
    """User login form"""

    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Length(max=255, message='Must be 255 characters or less')
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required')
    ])
    remember_me = BooleanField('Remember Me')


class RegistrationForm(FlaskForm):
    """User registration form"""

    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Email(message='Invalid email address'),
        Length(max=255, message='Must be 255 characters or less')
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required'),
        Length(min=8, message='Password must be at least 8 characters')
    ])

    def validate_email(self, email):
        user = User.query.filter_by(email=(email.data or '').strip().lower()).first()
        if user:
            raise ValidationError('Email already registered. Please use a different one.')


class SaveMapForm(FlaskForm):
    """Save the working canvas as a named map"""

    name = StringField('Map name', validators=[
        DataRequired(message='Please enter a map name'),
        Length(max=200, message='Map name must be 200 characters or less')
    ])
    map_id = IntegerField('Map', validators=[Optional()])


class BudgetGoalForm(FlaskForm):
    """Create a savings goal"""

    goal_name = StringField('Goal name', validators=[
        DataRequired(message='Please enter goal name and target amount'),
        Length(max=200, message='Goal name must be 200 characters or less')
    ])
    target_amount = DecimalField('Target amount', places=2, validators=[
        InputRequired(message='Please enter goal name and target amount'),
        NumberRange(min=0.01, message='Target amount must be greater than zero')
    ])


class ContributionForm(FlaskForm):
    """Add money to a savings goal"""

    amount = DecimalField('Contribution', places=2, validators=[
        InputRequired(message='Contribution amount is required'),
        NumberRange(min=0.01, message='Contribution must be greater than zero')
    ])


def first_error(form):
    """Return the first validation message of a form, for JSON error bodies."""
    for messages in form.errors.values():
        if messages:
            return messages[0]
    return 'Invalid request'


def _form_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def request_formdata():
    """Request body as form data.

    JSON scalars become strings (so decimals keep their exact text); nulls,
    lists and objects are dropped and left to the field validators.
    """
    if not request.is_json:
        return request.form

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return ImmutableMultiDict()
    return ImmutableMultiDict({
        key: _form_value(value)
        for key, value in data.items()
        if value is not None and not isinstance(value, (list, dict))
    })
