"""
Poll Service
Live poll sessions: creation, activation, voting and results
"""
import logging
import math

from sqlalchemy.exc import IntegrityError

from classengage.errors import Conflict, NotFound, ValidationError
from classengage.extensions import db, socketio
from classengage.models import Poll, PollBallot, PollOption, PollSession
from classengage.services.class_service import ClassService
from classengage.utils import generate_join_code

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 5


def _percent(votes, total):
    """Whole percent, halves rounded up"""
    if not total:
        return 0
    return int(math.floor(votes * 100 / total + 0.5))


class PollService:
    """Live poll session management"""

    @staticmethod
    def _unique_code():
        while True:
            code = generate_join_code(6)
            if not PollSession.query.filter_by(code=code).first():
                return code

    @staticmethod
    def _find_class_session(class_id):
        return PollSession.query.filter_by(class_id=class_id).first()

    @staticmethod
    def create_session(trainer, class_id):
        """Create the class's poll session, or return the existing one"""
        classroom = ClassService.get_owned_class(trainer, class_id)
        existing = PollService._find_class_session(classroom.id)
        if existing:
            return existing

        poll_session = PollSession(class_id=classroom.id, code=PollService._unique_code())
        db.session.add(poll_session)
        try:
            db.session.commit()
        except IntegrityError:
            # Created concurrently by another request
            db.session.rollback()
            return PollSession.query.filter_by(class_id=classroom.id).one()
        logger.info("Poll session %s created for class %s", poll_session.code, classroom.id)
        return poll_session

    @staticmethod
    def get_class_session(trainer, class_id):
        classroom = ClassService.get_owned_class(trainer, class_id)
        return PollService._find_class_session(classroom.id)

    @staticmethod
    def get_owned_session(trainer, session_id):
        poll_session = db.session.get(PollSession, session_id)
        if poll_session is None:
            raise NotFound("Session Not Found")
        ClassService.get_owned_class(trainer, poll_session.class_id)
        return poll_session

    @staticmethod
    def find_session_by_code(code):
        code = (code or '').strip().upper()
        poll_session = PollSession.query.filter_by(code=code).first() if code else None
        if poll_session is None:
            raise NotFound("Session Not Found")
        return poll_session

    @staticmethod
    def _get_poll(poll_session, poll_id):
        poll = db.session.get(Poll, poll_id)
        if poll is None or poll.session_id != poll_session.id:
            raise NotFound("Poll not found.")
        return poll

    @staticmethod
    def create_poll(poll_session, question, options):
        question = (question or '').strip()
        if not question:
            raise ValidationError("Question cannot be empty.")

        filled = [str(o).strip() for o in (options or []) if str(o or '').strip()]
        if len(filled) < MIN_OPTIONS:
            raise ValidationError("You must provide at least two options.")
        if len(filled) > MAX_OPTIONS:
            raise ValidationError(f"A poll can have at most {MAX_OPTIONS} options.")

        poll = Poll(session_id=poll_session.id, question=question, is_active=False)
        for position, text in enumerate(filled):
            poll.options.append(PollOption(position=position, text=text, votes=0))
        db.session.add(poll)
        db.session.commit()

        PollService.broadcast(poll_session)
        return poll

    @staticmethod
    def toggle_poll(poll_session, poll_id):
        """Activate a poll (deactivating all others) or deactivate the active one"""
        poll = PollService._get_poll(poll_session, poll_id)

        if not poll.is_active:
            for other in poll_session.polls:
                if other.is_active:
                    other.is_active = False
            poll.is_active = True
            poll_session.active_poll_id = poll.id
        else:
            poll.is_active = False
            poll_session.active_poll_id = None

        db.session.commit()
        PollService.broadcast(poll_session)
        return poll

    @staticmethod
    def delete_poll(poll_session, poll_id):
        poll = PollService._get_poll(poll_session, poll_id)
        if poll_session.active_poll_id == poll.id:
            poll_session.active_poll_id = None
        poll_session.polls.remove(poll)
        db.session.delete(poll)
        db.session.commit()
        PollService.broadcast(poll_session)

    @staticmethod
    def cast_vote(code, poll_id, option_id, voter_key):
        """One vote per participant on the currently active poll"""
        poll_session = PollService.find_session_by_code(code)
        poll = PollService._get_poll(poll_session, poll_id)
        if poll_session.active_poll_id != poll.id or not poll.is_active:
            raise ValidationError("This poll is not currently open for voting.")

        option = next((o for o in poll.options if o.id == option_id), None)
        if option is None:
            raise NotFound("Option not found")

        if PollBallot.query.filter_by(poll_id=poll.id, voter_key=voter_key).first():
            raise Conflict("You have already voted in this poll.")

        db.session.add(PollBallot(poll_id=poll.id, voter_key=voter_key, option_id=option.id))
        PollOption.query.filter_by(id=option.id).update(
            {PollOption.votes: PollOption.votes + 1}, synchronize_session=False
        )
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("You have already voted in this poll.")

        db.session.refresh(option)
        PollService.broadcast(poll_session)
        return option

    @staticmethod
    def has_voted(poll, voter_key):
        return PollBallot.query.filter_by(poll_id=poll.id, voter_key=voter_key).first() is not None

    @staticmethod
    def results(poll):
        """
        Per-option totals and percentages

        Returns:
            dict: poll id, question, total votes, options with percent
        """
        total = poll.total_votes()
        return {
            'poll_id': poll.id,
            'question': poll.question,
            'total_votes': total,
            'options': [
                {
                    'id': option.id,
                    'text': option.text,
                    'votes': option.votes,
                    'percent': _percent(option.votes, total),
                }
                for option in poll.options
            ],
        }

    @staticmethod
    def display_payload(poll_session):
        """Projector view: join link and the active poll's results"""
        active = poll_session.active_poll
        return {
            'code': poll_session.code,
            'join_path': f'/livevote?sessionCode={poll_session.code}',
            'active_poll': PollService.results(active) if active else None,
        }

    @staticmethod
    def broadcast(poll_session):
        socketio.emit(
            'poll_session_updated',
            PollService.display_payload(poll_session),
            room=f'poll:{poll_session.code}'
        )
