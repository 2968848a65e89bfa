"""
Vote Service
Per-user daily vote quota for PicPick contests
"""
import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from classengage.errors import NotFound, PermissionDenied, ValidationError
from classengage.extensions import db
from classengage.models import ContestImage, UserVote
from classengage.utils import today_str

logger = logging.getLogger(__name__)


class VoteService:
    """Daily vote quota and vote casting"""

    @staticmethod
    def _daily_votes():
        return current_app.config.get('DAILY_VOTES', 4)

    @staticmethod
    def _max_per_image():
        return current_app.config.get('MAX_VOTES_PER_IMAGE', 2)

    @staticmethod
    def _load_record(user_id, contest_id, for_update=False):
        query = UserVote.query.filter_by(user_id=user_id, contest_id=contest_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def _fresh_record(record, user_id, contest_id, today):
        """Return the record, created or reset when it is missing or from another day"""
        if record is None:
            record = UserVote(user_id=user_id, contest_id=contest_id)
            record.reset(VoteService._daily_votes(), today)
            db.session.add(record)
        elif record.last_voted_date != today:
            record.reset(VoteService._daily_votes(), today)
        return record

    @staticmethod
    def get_vote_status(user, contest):
        """
        Current quota for user in contest, resetting it on a new day

        Returns:
            dict: votes_left, last_voted_date, image_votes, exhausted image ids
        """
        today = today_str()
        record = VoteService._load_record(user.id, contest.id)
        record = VoteService._fresh_record(record, user.id, contest.id, today)
        try:
            db.session.commit()
        except IntegrityError:
            # Created concurrently by another request
            db.session.rollback()
            record = VoteService._load_record(user.id, contest.id)

        status = record.to_dict()
        limit = VoteService._max_per_image()
        status['maxed_image_ids'] = [
            int(image_id) for image_id, count in status['image_votes'].items() if count >= limit
        ]
        return status

    @staticmethod
    def cast_vote(user, contest, image_id):
        """
        Cast one vote for image_id inside a single transaction

        Raises:
            NotFound: image missing or not part of this contest
            PermissionDenied: quota exhausted or per-image cap reached
        """
        try:
            return VoteService._cast_vote(user, contest, image_id)
        except IntegrityError:
            # Another request created the quota record first; retry against it
            db.session.rollback()
            return VoteService._cast_vote(user, contest, image_id)

    @staticmethod
    def _cast_vote(user, contest, image_id):
        record = VoteService._load_record(user.id, contest.id, for_update=True)
        image = ContestImage.query.filter_by(id=image_id).with_for_update().first()

        if image is None or image.contest_id != contest.id:
            db.session.rollback()
            raise NotFound("Image does not exist!")

        today = today_str()
        record = VoteService._fresh_record(record, user.id, contest.id, today)

        if record.votes_today <= 0:
            db.session.rollback()
            raise PermissionDenied("You have no votes left for today.")

        counts = record.get_image_votes()
        key = str(image.id)
        image_vote_count = counts.get(key, 0)
        if image_vote_count >= VoteService._max_per_image():
            db.session.rollback()
            raise PermissionDenied("You can only vote for the same image twice.")

        image.votes = (image.votes or 0) + 1
        counts[key] = image_vote_count + 1
        record.set_image_votes(counts)
        record.votes_today -= 1
        record.last_voted_date = today

        db.session.commit()

        logger.info(
            "Vote cast: user=%s contest=%s image=%s (votes left %s)",
            user.id, contest.id, image.id, record.votes_today
        )
        return {
            'image_id': image.id,
            'image_votes': image.votes,
            'votes_left': record.votes_today,
            'votes_for_image': counts[key],
        }

    @staticmethod
    def require_positive_id(raw):
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValidationError("A valid image id is required.")
        if value <= 0:
            raise ValidationError("A valid image id is required.")
        return value
