"""
Account Service
Registration, credential checks and manager/trainer links
"""
import logging
import re

from werkzeug.security import generate_password_hash, check_password_hash

from classengage.errors import AuthenticationError, Conflict, NotFound, ValidationError
from classengage.extensions import db
from classengage.models import User
from classengage.models.user import ROLES

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class AccountService:
    """Account management"""

    @staticmethod
    def normalize_email(email):
        email = (email or '').strip().lower()
        if not _EMAIL_RE.match(email):
            raise ValidationError("Please enter a valid email address.")
        return email

    @staticmethod
    def register(email, password, display_name=None, role='student'):
        email = AccountService.normalize_email(email)
        if not password:
            raise ValidationError("Password is required.")
        if role not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(ROLES)}.")

        if User.query.filter_by(email=email).first():
            raise Conflict("An account with this email already exists.")

        user = User(
            email=email,
            password=generate_password_hash(password),
            display_name=(display_name or '').strip() or email.split('@')[0],
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        logger.info("Registered %s account %s", role, user.id)
        return user

    @staticmethod
    def authenticate(email, password):
        email = AccountService.normalize_email(email)
        user = User.query.filter_by(email=email).first()
        if not user or not check_password_hash(user.password, password or ''):
            raise AuthenticationError("Invalid email or password. Please try again.")
        return user

    @staticmethod
    def add_trainer(manager, email):
        """Link an existing trainer account to a manager"""
        email = AccountService.normalize_email(email)
        trainer = User.query.filter_by(email=email, role='trainer').first()
        if trainer is None:
            raise NotFound("No trainer found with that email address.")
        if trainer not in manager.managed_trainers:
            manager.managed_trainers.append(trainer)
            db.session.commit()
        return trainer

    @staticmethod
    def list_trainers(manager):
        return sorted(manager.managed_trainers, key=lambda t: (t.display_name or '').lower())
