"""
Database Models for Mind Navigator

This module defines all database models using SQLAlchemy ORM.
Models include User, UserSubscription, DecisionMap, CanvasDraft and BudgetGoal.
"""

from mindnav.extensions import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from datetime import datetime

from mindnav.domain.budget import goal_progress


@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for Flask-Login"""
    try:
        if user_id is None:
            return None
        return db.session.get(User, int(user_id))
    except Exception:
        try:
            db.session.rollback()
        except Exception:
            pass
        return None


class User(UserMixin, db.Model):
    """Account that owns decision maps, budget goals and a subscription"""

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    has_seen_help = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    # Relationships
    decision_maps = db.relationship('DecisionMap', backref='owner', lazy='dynamic', cascade='all, delete-orphan')
    budget_goals = db.relationship('BudgetGoal', backref='owner', lazy='dynamic', cascade='all, delete-orphan')
    subscription = db.relationship(
        'UserSubscription',
        backref='user',
        uselist=False,
        cascade='all, delete-orphan',
    )
    canvas_draft = db.relationship(
        'CanvasDraft',
        backref='owner',
        uselist=False,
        cascade='all, delete-orphan',
    )

    def set_password(self, password):
        """Hash and set user password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against stored hash.

        Only hashed passwords are accepted; any verification error fails closed.
        """
        if not self.password_hash:
            return False
        try:
            return check_password_hash(self.password_hash, password)
        except Exception:
            return False

    def __repr__(self):
        return f'<User {self.email}>'


class UserSubscription(db.Model):
    """Premium flag for a user, maintained by the Stripe webhook"""

    __tablename__ = 'user_subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),
        unique=True,
        nullable=False,
        index=True,
    )
    is_premium = db.Column(db.Boolean, nullable=False, default=False)
    premium_since = db.Column(db.DateTime)
    stripe_customer_id = db.Column(db.String(255))
    stripe_subscription_id = db.Column(db.String(255), index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'is_premium': bool(self.is_premium),
            'premium_since': self.premium_since.isoformat() if self.premium_since else None,
        }

    def __repr__(self):
        return f'<UserSubscription user={self.user_id} premium={self.is_premium}>'


class DecisionMap(db.Model):
    """Named snapshot of a decision graph.

    ``nodes`` and ``connections`` hold the graph in its wire format
    (see :meth:`mindnav.domain.decision_graph.DecisionGraph.to_snapshot`).
    """

    __tablename__ = 'decision_maps'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    nodes = db.Column(db.JSON, nullable=False, default=list)
    connections = db.Column(db.JSON, nullable=False, default=list)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    @property
    def node_count(self):
        return len(self.nodes or [])

    @property
    def connection_count(self):
        return len(self.connections or [])

    def to_summary(self):
        return {
            'id': self.id,
            'name': self.name,
            'node_count': self.node_count,
            'connection_count': self.connection_count,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict(self):
        data = self.to_summary()
        data['nodes'] = list(self.nodes or [])
        data['connections'] = list(self.connections or [])
        return data

    def __repr__(self):
        return f'<DecisionMap {self.name}>'


class CanvasDraft(db.Model):
    """The user's unsaved working canvas, one row per user.

    ``map_id`` points at the saved map the canvas was loaded from or last saved
    to; it is a plain column because that map may be deleted independently.
    """

    __tablename__ = 'canvas_drafts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),
        unique=True,
        nullable=False,
        index=True,
    )
    map_id = db.Column(db.Integer)
    map_name = db.Column(db.String(200))
    nodes = db.Column(db.JSON, nullable=False, default=list)
    connections = db.Column(db.JSON, nullable=False, default=list)
    pending_source = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<CanvasDraft user={self.user_id}>'


class BudgetGoal(db.Model):
    """Savings goal tracked next to the decision canvas"""

    __tablename__ = 'budget_goals'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    goal_name = db.Column(db.String(200), nullable=False)
    target_amount = db.Column(db.Numeric(12, 2), nullable=False)
    current_saved = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def progress(self):
        return goal_progress(self.current_saved, self.target_amount)

    def to_dict(self):
        progress = self.progress
        return {
            'id': self.id,
            'goal_name': self.goal_name,
            'target_amount': float(self.target_amount or 0),
            'current_saved': float(self.current_saved or 0),
            'progress': round(progress.percent, 1),
            'remaining': progress.remaining,
            'is_complete': progress.is_complete,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<BudgetGoal {self.goal_name}>'
