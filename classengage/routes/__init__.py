"""
Routes Package
Exports all route blueprints
"""
from classengage.routes.auth import auth_bp
from classengage.routes.classes import classes_bp
from classengage.routes.contests import contests_bp
from classengage.routes.polls import polls_bp
from classengage.routes.quizbattle import quizbattle_bp
from classengage.routes.tools import tools_bp
from classengage.routes.public import public_bp

__all__ = [
    'auth_bp', 'classes_bp', 'contests_bp', 'polls_bp',
    'quizbattle_bp', 'tools_bp', 'public_bp',
]
