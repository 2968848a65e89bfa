"""
Utils Package
"""
from classengage.utils.helpers import (
    now_utc,
    as_utc,
    parse_datetime,
    today_str,
    generate_join_code,
    generate_room_code,
    get_current_user,
    ensure_guest,
    participant_key,
    require_login,
    require_role,
    request_data
)

__all__ = [
    'now_utc',
    'as_utc',
    'parse_datetime',
    'today_str',
    'generate_join_code',
    'generate_room_code',
    'get_current_user',
    'ensure_guest',
    'participant_key',
    'require_login',
    'require_role',
    'request_data'
]
