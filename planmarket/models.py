"""
Database Models for the local backend

These tables mirror the hosted service's schema so the application can run
without it (development, tests). ``AuthAccount`` stands in for the hosted
auth service's user store; every other table uses the remote column names.
"""

import uuid
from datetime import datetime

from werkzeug.security import generate_password_hash, check_password_hash

from planmarket.extensions import db


def _new_id():
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class AuthAccount(db.Model):
    """Credentials and user metadata of the local auth service."""

    __tablename__ = 'auth_accounts'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    user_metadata = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password):
        """Hash and set the account password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        try:
            return check_password_hash(self.password_hash, password)
        except Exception:
            # Any unexpected verification error should fail safely.
            return False

    def __repr__(self):
        return f'<AuthAccount {self.email}>'


class UserRecord(db.Model):
    """Profile row created once the email is verified."""

    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), index=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    role = db.Column(db.String(20), nullable=False, default='visitor')
    verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_record(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'role': self.role,
            'verified': bool(self.verified),
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<UserRecord {self.email}>'


class PlanRecord(db.Model):
    """House plan listing"""

    __tablename__ = 'house_plans'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    title = db.Column(db.String(200), nullable=False)
    style = db.Column(db.String(60), index=True)
    bedrooms = db.Column(db.Integer, default=0, index=True)
    bathrooms = db.Column(db.Float, default=0)
    floor_area = db.Column(db.Float, default=0)
    floors = db.Column(db.Integer, default=1)
    garages = db.Column(db.Integer, default=0)
    has_pool = db.Column(db.Boolean, default=False)
    estimated_budget = db.Column(db.Float)
    price = db.Column(db.Float, nullable=False, default=0)
    description = db.Column(db.Text, default='')
    images = db.Column(db.JSON, default=list)
    plans_2d = db.Column(db.JSON, default=list)
    model_3d = db.Column(db.String(600))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_record(self):
        return {
            'id': self.id,
            'title': self.title,
            'style': self.style,
            'bedrooms': self.bedrooms,
            'bathrooms': self.bathrooms,
            'floor_area': self.floor_area,
            'floors': self.floors,
            'garages': self.garages,
            'has_pool': bool(self.has_pool),
            'estimated_budget': self.estimated_budget,
            'price': self.price,
            'description': self.description,
            'images': list(self.images or []),
            'plans_2d': list(self.plans_2d or []),
            'model_3d': self.model_3d,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<PlanRecord {self.title}>'


class ServiceRecord(db.Model):
    """Add-on service offered with every plan"""

    __tablename__ = 'additional_services'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Float, nullable=False, default=0)
    description = db.Column(db.Text, default='')
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    def to_record(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'description': self.description,
            'is_default': bool(self.is_default),
        }

    def __repr__(self):
        return f'<ServiceRecord {self.name}>'


class FavoriteRecord(db.Model):
    __tablename__ = 'favorites'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'plan_id', name='uq_favorites_user_plan'),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    plan_id = db.Column(db.String(36), db.ForeignKey('house_plans.id', ondelete='CASCADE'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_record(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'plan_id': self.plan_id,
            'created_at': _iso(self.created_at),
        }


class SavedSearchRecord(db.Model):
    __tablename__ = 'saved_searches'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    filters = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_record(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'filters': dict(self.filters or {}),
            'created_at': _iso(self.created_at),
        }


TABLE_MODELS = {
    'house_plans': PlanRecord,
    'additional_services': ServiceRecord,
    'favorites': FavoriteRecord,
    'saved_searches': SavedSearchRecord,
    'users': UserRecord,
}
