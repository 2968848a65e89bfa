"""
Socket.IO Event Handlers
Clients join a room per poll session, quiz room, timer or contest and
receive the current state right away; services broadcast later updates
"""
import logging

from flask_socketio import emit, join_room, leave_room

from classengage.errors import AuthenticationError, ServiceError, ValidationError
from classengage.extensions import socketio
from classengage.services import (
    ContestService, PollService, QuizBattleService, TimerService,
)
from classengage.utils import get_current_user

logger = logging.getLogger(__name__)


def _resolve_timer(data):
    user = get_current_user()
    if user is None:
        raise AuthenticationError("Please log in first.")
    class_id = data.get('class_id')
    if class_id in (None, ''):
        return TimerService.get_timer(user)
    try:
        class_id = int(class_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid class id.")
    return TimerService.find_class_timer(user, class_id)


def register_socket_events():
    """Register all Socket.IO event handlers"""

    @socketio.on('join_poll_session')
    def join_poll_session(data):
        try:
            poll_session = PollService.find_session_by_code((data or {}).get('code'))
        except ServiceError as e:
            emit('service_error', e.to_dict())
            return
        join_room(f'poll:{poll_session.code}')
        emit('poll_session_updated', PollService.display_payload(poll_session))

    @socketio.on('leave_poll_session')
    def leave_poll_session(data):
        leave_room(f"poll:{(data or {}).get('code')}")

    @socketio.on('join_quiz_room')
    def join_quiz_room(data):
        try:
            room = QuizBattleService.find_room((data or {}).get('code'), include_ended=True)
        except ServiceError as e:
            emit('service_error', e.to_dict())
            return
        join_room(f'quiz:{room.code}')
        emit('quiz_room_updated', QuizBattleService.state_payload(room))

    @socketio.on('leave_quiz_room')
    def leave_quiz_room(data):
        leave_room(f"quiz:{(data or {}).get('code')}")

    @socketio.on('join_timer')
    def join_timer(data):
        try:
            timer = _resolve_timer(data or {})
        except ServiceError as e:
            emit('service_error', e.to_dict())
            return
        join_room(TimerService.room_name(timer))
        emit('timer_updated', TimerService.snapshot(timer))

    @socketio.on('leave_timer')
    def leave_timer(data):
        class_id = (data or {}).get('class_id')
        if class_id in (None, ''):
            user = get_current_user()
            if user is not None:
                leave_room(f'timer:user:{user.id}')
        else:
            leave_room(f'timer:{class_id}')

    @socketio.on('join_contest')
    def join_contest(data):
        try:
            contest = ContestService.get_contest((data or {}).get('contest_id'))
            ContestService.ensure_access(contest)
        except ServiceError as e:
            emit('service_error', e.to_dict())
            return
        join_room(f'contest:{contest.id}')
        images = ContestService.list_images(contest)
        emit('contest_images_updated', {
            'contest_id': contest.id,
            'images': [image.to_dict() for image in images],
        })

    @socketio.on('leave_contest')
    def leave_contest(data):
        leave_room(f"contest:{(data or {}).get('contest_id')}")

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        logger.debug("Socket client disconnected")
