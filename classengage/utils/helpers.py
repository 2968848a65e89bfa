"""
Helper Functions
Utility functions used across the application
"""
from datetime import datetime, timezone
from flask import session, current_app, request
from functools import wraps
import random
import string
import uuid
import pytz

from classengage.errors import AuthenticationError, PermissionDenied, ValidationError
from classengage.extensions import db
from classengage.models import User


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def as_utc(dt):
    """Attach UTC to naive datetimes read back from the database"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value):
    """Parse an ISO-8601 string into a naive UTC datetime (None passes through)"""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError(f"Invalid date: {value}")
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def today_str():
    """Current calendar day (YYYY-MM-DD) in the configured timezone"""
    tz = pytz.timezone(current_app.config.get('TIMEZONE', 'UTC'))
    return now_utc().astimezone(tz).strftime('%Y-%m-%d')


def generate_join_code(length=6):
    """Generate random join code"""
    return "".join(random.choices(string.ascii_uppercase + string.digits, k=length))


def generate_room_code():
    """Four digit quiz room code"""
    return str(random.randint(1000, 9999))


def get_current_user():
    """Get current logged-in user"""
    user_id = session.get("user_id")
    if not user_id:
        return None
    return db.session.get(User, user_id)


def ensure_guest():
    """Give anonymous participants a stable guest id for this browser session"""
    if "guest_id" not in session:
        session["guest_id"] = uuid.uuid4().hex[:8]
    return session["guest_id"]


def participant_key():
    """Identity used for one-vote-per-participant checks"""
    user_id = session.get("user_id")
    if user_id:
        return f"user:{user_id}"
    return f"guest:{ensure_guest()}"


# Decorators
def require_login(f):
    """Decorator to require any signed-in account"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_user() is None:
            raise AuthenticationError("You must be signed in.")
        return f(*args, **kwargs)
    return decorated_function


def require_role(*roles):
    """Decorator to require one of the given account roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()
            if user is None:
                raise AuthenticationError("You must be signed in.")
            if user.role not in roles:
                raise PermissionDenied("Access Denied")
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def request_data():
    """JSON body or form fields of the current request"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()
