"""
Contest Service
PicPick contest lifecycle: creation, access control, uploads and teardown
"""
import logging

from flask import session
from werkzeug.security import generate_password_hash, check_password_hash

from classengage.errors import NotFound, PermissionDenied, ValidationError
from classengage.extensions import db, socketio
from classengage.models import Classroom, Contest, ContestImage, UserVote
from classengage.models.contest import IMAGE_SHAPES
from classengage.services.image_service import ImageService
from classengage.storage import get_storage
from classengage.utils import as_utc, now_utc, parse_datetime

logger = logging.getLogger(__name__)


def _access_key(contest_id):
    return f'contest_access_{contest_id}'


class ContestService:
    """Contest creation, access and cleanup"""

    @staticmethod
    def get_contest(contest_id):
        contest = db.session.get(Contest, contest_id)
        if contest is None:
            raise NotFound("This contest does not exist.")
        return contest

    @staticmethod
    def create_contest(user, name, image_shape='circle', start_date=None,
                       end_date=None, class_id=None, password=None):
        """Create an active contest, optionally class-scoped and password protected"""
        name = (name or '').strip()
        if not name:
            raise ValidationError("Contest name is required.")

        image_shape = image_shape or 'circle'
        if image_shape not in IMAGE_SHAPES:
            raise ValidationError(f"Image shape must be one of: {', '.join(IMAGE_SHAPES)}.")

        start = parse_datetime(start_date)
        end = parse_datetime(end_date)
        if start and end and end < start:
            raise ValidationError("End date must be after the start date.")

        if class_id is not None:
            classroom = db.session.get(Classroom, class_id)
            if classroom is None:
                raise NotFound("Class not found.")
            if classroom.trainer_id != user.id:
                raise PermissionDenied("You do not have access to this class.")

        contest = Contest(
            name=name,
            creator_id=user.id,
            creator_name=user.display_name or "Anonymous",
            status='active',
            image_shape=image_shape,
            start_date=start,
            end_date=end,
            class_id=class_id,
        )
        if password:
            contest.has_password = True
            contest.password_hash = generate_password_hash(password)

        db.session.add(contest)
        db.session.commit()
        logger.info("Contest %s created by user %s (class=%s)", contest.id, user.id, class_id)
        return contest

    @staticmethod
    def list_contests(user, class_id=None):
        """Contests newest first; global contests when class_id is None"""
        if class_id is not None:
            classroom = db.session.get(Classroom, class_id)
            if classroom is None:
                raise NotFound("Class not found.")
            if classroom.trainer_id != user.id and not classroom.has_learner(user):
                raise PermissionDenied("You do not have access to this class.")
            query = Contest.query.filter_by(class_id=class_id)
        else:
            query = Contest.query.filter(Contest.class_id.is_(None))
        return query.order_by(Contest.created_at.desc(), Contest.id.desc()).all()

    @staticmethod
    def can_manage(user, contest):
        if user is None:
            return False
        if contest.creator_id == user.id:
            return True
        if contest.class_id is not None:
            classroom = db.session.get(Classroom, contest.class_id)
            return classroom is not None and classroom.trainer_id == user.id
        return False

    # ================= ACCESS =================

    @staticmethod
    def has_access(contest):
        if not contest.has_password:
            return True
        return session.get(_access_key(contest.id)) == 'granted'

    @staticmethod
    def unlock(contest, password):
        """Grant this browser session access to a password-protected contest"""
        if not contest.has_password:
            return True
        if not password or not check_password_hash(contest.password_hash, password):
            raise PermissionDenied("The password you entered is incorrect.")
        session[_access_key(contest.id)] = 'granted'
        return True

    @staticmethod
    def ensure_access(contest):
        if not ContestService.has_access(contest):
            raise PermissionDenied(f'The contest "{contest.name}" is password protected.')

    @staticmethod
    def is_open(contest, at=None):
        at = at or now_utc()
        if contest.status != 'active':
            return False
        if contest.start_date and at < as_utc(contest.start_date):
            return False
        if contest.end_date and at > as_utc(contest.end_date):
            return False
        return True

    @staticmethod
    def ensure_open(contest):
        now = now_utc()
        if contest.start_date and now < as_utc(contest.start_date):
            raise ValidationError("This contest has not started yet.")
        if contest.end_date and now > as_utc(contest.end_date):
            raise ValidationError("This contest has ended.")
        if contest.status != 'active':
            raise ValidationError("This contest is not active.")

    # ================= IMAGES =================

    @staticmethod
    def list_images(contest):
        """Contest images, most votes first"""
        return ContestImage.query.filter_by(contest_id=contest.id)\
            .order_by(ContestImage.votes.desc(), ContestImage.id.asc()).all()

    @staticmethod
    def podium(images):
        """
        Top three arranged for display: 2nd, 1st, 3rd

        Returns:
            list: dicts with image and zero-based rank
        """
        top = images[:3]
        if len(top) < 3:
            return [{'image': image, 'rank': i} for i, image in enumerate(top)]
        return [
            {'image': top[1], 'rank': 1},
            {'image': top[0], 'rank': 0},
            {'image': top[2], 'rank': 2},
        ]

    @staticmethod
    def upload_image(user, contest, name, data, mime_type=None, crop=None):
        """Validate, crop and store a photo, then enter it in the contest"""
        name = (name or '').strip()
        if not name:
            raise ValidationError("Badge name is required.")

        image = ImageService.validate_upload(data, mime_type)
        webp = ImageService.to_webp(image, crop=crop)

        entry = ContestImage(
            contest_id=contest.id,
            name=name,
            first_name=user.display_name or "Anonymous",
            last_name="",
            votes=0,
            uploader_id=user.id,
        )
        db.session.add(entry)
        db.session.flush()

        storage = get_storage()
        path = f"images/{entry.id}.webp"
        try:
            entry.url = storage.save(path, webp, 'image/webp')
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Image %s uploaded to contest %s by user %s", entry.id, contest.id, user.id)
        ContestService.broadcast_images(contest)
        return entry

    @staticmethod
    def broadcast_images(contest):
        images = ContestService.list_images(contest)
        socketio.emit(
            'contest_images_updated',
            {'contest_id': contest.id, 'images': [i.to_dict() for i in images]},
            room=f'contest:{contest.id}'
        )

    # ================= TEARDOWN =================

    @staticmethod
    def delete_contest(user, contest_id):
        """
        Delete a contest together with its images, blobs and every user's
        vote record for it

        Returns:
            dict: success flag and message
        """
        contest = ContestService.get_contest(contest_id)
        if not ContestService.can_manage(user, contest):
            raise PermissionDenied("You do not have permission to delete this contest.")

        logger.info("Starting cleanup for contest: %s", contest.id)
        storage = get_storage()

        images = ContestImage.query.filter_by(contest_id=contest.id).all()
        blob_paths = []
        if not images:
            logger.info("No images found for this contest.")
        else:
            logger.info("Found %d images to delete.", len(images))
        for image in images:
            path = storage.path_from_url(image.url)
            if path:
                blob_paths.append(path)
            db.session.delete(image)

        votes_deleted = UserVote.query.filter_by(contest_id=contest.id)\
            .delete(synchronize_session=False)
        name = contest.name
        db.session.delete(contest)
        db.session.commit()
        logger.info("Deleted %d images and %d vote records", len(images), votes_deleted)

        # Blobs go after the commit so no surviving row points at a missing file
        for path in blob_paths:
            try:
                storage.delete(path)
                logger.info("Deleted from storage: %s", path)
            except FileNotFoundError:
                logger.debug("Blob already gone: %s", path)
            except (OSError, ValueError):
                logger.exception("Failed to delete file %s from storage", path)

        logger.info("Successfully cleaned up contest %s", contest_id)
        return {
            'success': True,
            'message': f'Contest "{name}" and its {len(images)} photos were deleted.',
        }
