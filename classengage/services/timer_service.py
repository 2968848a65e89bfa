"""
Timer Service
Tickr activity countdown shared with the class
"""
import logging

from classengage.errors import NotFound, PermissionDenied, ValidationError
from classengage.extensions import db, socketio
from classengage.models import ActivityTimer
from classengage.services.class_service import ClassService
from classengage.utils import as_utc, now_utc

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Time's Up! Great job!"


def clamp_unit(value):
    """Minutes or seconds field, clamped to 0-59 (bad input counts as 0)"""
    try:
        value = int(value)
    except (TypeError, ValueError):
        value = 0
    return max(0, min(59, value))


def format_time(total):
    mins, secs = divmod(max(int(total), 0), 60)
    return f"{mins:02d}:{secs:02d}"


class TimerService:
    """Countdown timer state machine: idle, running, paused, finished"""

    @staticmethod
    def get_timer(owner, class_id=None):
        if class_id is not None:
            ClassService.get_owned_class(owner, class_id)
            timer = ActivityTimer.query.filter_by(class_id=class_id).first()
        else:
            timer = ActivityTimer.query.filter_by(owner_id=owner.id, class_id=None).first()

        if timer is None:
            timer = ActivityTimer(
                owner_id=owner.id,
                class_id=class_id,
                minutes=5,
                seconds=0,
                total_seconds=300,
                remaining_seconds=300,
                status='idle',
                message=DEFAULT_MESSAGE,
            )
            db.session.add(timer)
            db.session.commit()
        return timer

    @staticmethod
    def find_class_timer(user, class_id):
        """Read-only lookup for the class trainer or its learners"""
        classroom = ClassService.get_class(class_id)
        if classroom.trainer_id != user.id and not classroom.has_learner(user):
            raise PermissionDenied("You are not enrolled in this class.")
        timer = ActivityTimer.query.filter_by(class_id=class_id).first()
        if timer is None:
            raise NotFound("No timer has been set for this class.")
        return timer

    @staticmethod
    def time_left(timer, at=None):
        if timer.status != 'running' or timer.started_at is None:
            return timer.remaining_seconds or 0
        at = at or now_utc()
        elapsed = int((at - as_utc(timer.started_at)).total_seconds())
        return max((timer.remaining_seconds or 0) - elapsed, 0)

    @staticmethod
    def _settle(timer):
        """Mark a running timer finished once it has reached zero"""
        if timer.status == 'running' and TimerService.time_left(timer) <= 0:
            timer.status = 'finished'
            timer.remaining_seconds = 0
            timer.started_at = None
            db.session.commit()
            logger.info("Timer %s finished", timer.id)

    @staticmethod
    def start(timer, minutes=None, seconds=None, message=None):
        minutes = clamp_unit(timer.minutes if minutes is None else minutes)
        seconds = clamp_unit(timer.seconds if seconds is None else seconds)
        total = minutes * 60 + seconds
        if total <= 0:
            raise ValidationError("Set a time greater than zero.")

        timer.minutes = minutes
        timer.seconds = seconds
        timer.total_seconds = total
        timer.remaining_seconds = total
        timer.started_at = now_utc()
        timer.status = 'running'
        if message is not None:
            timer.message = str(message).strip() or DEFAULT_MESSAGE
        db.session.commit()
        TimerService.broadcast(timer)
        return timer

    @staticmethod
    def pause(timer):
        TimerService._settle(timer)
        if timer.status != 'running':
            raise ValidationError("The timer is not running.")
        timer.remaining_seconds = TimerService.time_left(timer)
        timer.started_at = None
        timer.status = 'paused'
        db.session.commit()
        TimerService.broadcast(timer)
        return timer

    @staticmethod
    def resume(timer):
        if timer.status != 'paused':
            raise ValidationError("The timer is not paused.")
        timer.started_at = now_utc()
        timer.status = 'running'
        db.session.commit()
        TimerService.broadcast(timer)
        return timer

    @staticmethod
    def reset(timer):
        timer.remaining_seconds = timer.total_seconds
        timer.started_at = None
        timer.status = 'idle'
        db.session.commit()
        TimerService.broadcast(timer)
        return timer

    @staticmethod
    def snapshot(timer):
        """
        Display state of the timer

        Returns:
            dict: status, time_left, display (MM:SS), color, cue, message
        """
        TimerService._settle(timer)
        left = TimerService.time_left(timer)
        status = timer.status

        if status == 'finished':
            color = 'green'
        elif status != 'running':
            color = 'gray'
        elif left <= 10:
            color = 'red'
        elif left <= 30:
            color = 'orange'
        else:
            color = 'green'

        cue = None
        if status == 'running':
            if 3 < left <= 10:
                cue = 'tick'
            elif 0 < left <= 3:
                cue = 'final'
        elif status == 'finished':
            cue = 'complete'

        return {
            'id': timer.id,
            'class_id': timer.class_id,
            'status': status,
            'minutes': timer.minutes,
            'seconds': timer.seconds,
            'total_seconds': timer.total_seconds,
            'time_left': left,
            'display': format_time(left),
            'color': color,
            'pulse': status == 'running' and left <= 10,
            'cue': cue,
            'celebrate': status == 'finished',
            'message': timer.message,
        }

    @staticmethod
    def room_name(timer):
        return f'timer:{timer.class_id}' if timer.class_id else f'timer:user:{timer.owner_id}'

    @staticmethod
    def broadcast(timer):
        socketio.emit('timer_updated', TimerService.snapshot(timer), room=TimerService.room_name(timer))
