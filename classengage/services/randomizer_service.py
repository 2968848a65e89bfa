"""
Randomizer Service
Spinning wheel for picking learners or topics
"""
import logging
import random

from classengage.errors import ValidationError
from classengage.extensions import db
from classengage.models import RandomizerWheel
from classengage.services.class_service import ClassService

logger = logging.getLogger(__name__)

HISTORY_SIZE = 20


class RandomizerService:
    """Wheel management and spinning"""

    @staticmethod
    def get_wheel(owner, class_id=None):
        """Wheel for the class (trainer only) or the owner's personal wheel"""
        if class_id is not None:
            ClassService.get_owned_class(owner, class_id)
            wheel = RandomizerWheel.query.filter_by(class_id=class_id).first()
        else:
            wheel = RandomizerWheel.query.filter_by(owner_id=owner.id, class_id=None).first()

        if wheel is None:
            wheel = RandomizerWheel(owner_id=owner.id, class_id=class_id)
            wheel.set_entries([])
            wheel.set_history([])
            db.session.add(wheel)
            db.session.commit()
        return wheel

    @staticmethod
    def set_entries(wheel, entries):
        cleaned = [str(e).strip() for e in (entries or []) if str(e or '').strip()]
        wheel.set_entries(cleaned)
        db.session.commit()
        return wheel

    @staticmethod
    def load_roster(owner, wheel):
        """Fill the wheel with the class learners' names"""
        if wheel.class_id is None:
            raise ValidationError("This wheel is not attached to a class.")
        _, learners = ClassService.roster(owner, wheel.class_id)
        names = [learner.display_name or learner.email for learner in learners]
        return RandomizerService.set_entries(wheel, names)

    @staticmethod
    def spin(wheel, remove_winner=False, rng=None):
        """
        Pick one entry uniformly at random

        Returns:
            dict: winner, its index on the wheel before removal, remaining entries
        """
        entries = wheel.get_entries()
        if not entries:
            raise ValidationError("Add at least one entry to spin.")

        rng = rng or random
        index = rng.randrange(len(entries))
        winner = entries[index]

        if remove_winner:
            entries.pop(index)
            wheel.set_entries(entries)

        history = ([winner] + wheel.get_history())[:HISTORY_SIZE]
        wheel.set_history(history)
        wheel.last_result = winner
        db.session.commit()

        logger.debug("Wheel %s landed on %r", wheel.id, winner)
        return {'winner': winner, 'index': index, 'entries': entries}
