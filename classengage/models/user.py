"""
User Model
Trainers, learners and managers share one account table
"""
from classengage.extensions import db
from datetime import datetime, timezone


def now_utc():
    return datetime.now(timezone.utc)


ROLES = ('trainer', 'student', 'manager')


manager_trainers = db.Table(
    'manager_trainers',
    db.Column('manager_id', db.Integer, db.ForeignKey('user.id'), primary_key=True),
    db.Column('trainer_id', db.Integer, db.ForeignKey('user.id'), primary_key=True),
)


class User(db.Model):
    """User model"""
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(100))
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='student')
    created_at = db.Column(db.DateTime, default=now_utc)

    managed_trainers = db.relationship(
        'User',
        secondary=manager_trainers,
        primaryjoin=id == manager_trainers.c.manager_id,
        secondaryjoin=id == manager_trainers.c.trainer_id,
        lazy='select',
    )

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'display_name': self.display_name,
            'role': self.role,
        }
