"""
Contest Routes
PicPick contests: listing, creation, password access, uploads, voting, teardown
"""
from flask import Blueprint, jsonify, request

from classengage.errors import ValidationError
from classengage.services import ContestService, ImageService, LeaderboardService, VoteService
from classengage.utils import get_current_user, require_login, request_data

contests_bp = Blueprint('contests', __name__)


def _optional_int(value, label):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}.")


@contests_bp.route('', methods=['GET'])
@require_login
def list_contests():
    """Contests of a class (?class_id=) or the global contests"""
    class_id = _optional_int(request.args.get('class_id'), 'class id')
    contests = ContestService.list_contests(get_current_user(), class_id)
    return jsonify({'success': True, 'contests': [c.to_dict() for c in contests]})


@contests_bp.route('', methods=['POST'])
@require_login
def create_contest():
    data = request_data()
    contest = ContestService.create_contest(
        get_current_user(),
        name=data.get('name'),
        image_shape=data.get('image_shape'),
        start_date=data.get('start_date'),
        end_date=data.get('end_date'),
        class_id=_optional_int(data.get('class_id'), 'class id'),
        password=data.get('password') or None,
    )
    scope = ' for this class' if contest.class_id else ''
    return jsonify({
        'success': True,
        'message': f'Your contest "{contest.name}" is now active{scope}.',
        'contest': contest.to_dict(),
    }), 201


@contests_bp.route('/<int:contest_id>', methods=['GET'])
def contest_detail(contest_id):
    contest = ContestService.get_contest(contest_id)
    return jsonify({
        'success': True,
        'contest': contest.to_dict(),
        'access_granted': ContestService.has_access(contest),
        'is_open': ContestService.is_open(contest),
        'can_manage': ContestService.can_manage(get_current_user(), contest),
    })


@contests_bp.route('/<int:contest_id>/unlock', methods=['POST'])
def unlock_contest(contest_id):
    """Password prompt for protected contests"""
    contest = ContestService.get_contest(contest_id)
    ContestService.unlock(contest, request_data().get('password'))
    return jsonify({'success': True, 'access_granted': True})


@contests_bp.route('/<int:contest_id>', methods=['DELETE'])
@require_login
def delete_contest(contest_id):
    """Delete the contest with its photos and vote records"""
    result = ContestService.delete_contest(get_current_user(), contest_id)
    return jsonify(result)


@contests_bp.route('/<int:contest_id>/images', methods=['GET'])
def list_images(contest_id):
    """Gallery: podium (top three) and the rest, most votes first"""
    contest = ContestService.get_contest(contest_id)
    ContestService.ensure_access(contest)

    images = ContestService.list_images(contest)
    podium = ContestService.podium(images)
    return jsonify({
        'success': True,
        'contest': contest.to_dict(),
        'images': [image.to_dict() for image in images],
        'podium': [dict(p['image'].to_dict(), rank=p['rank']) for p in podium],
        'others': [
            dict(image.to_dict(), rank=i + 3) for i, image in enumerate(images[3:])
        ],
    })


@contests_bp.route('/<int:contest_id>/images', methods=['POST'])
@require_login
def upload_image(contest_id):
    """Upload a photo (multipart 'file' or JSON 'data_url') into the contest"""
    contest = ContestService.get_contest(contest_id)
    ContestService.ensure_access(contest)
    ContestService.ensure_open(contest)

    data = request_data()
    upload = request.files.get('file')
    if upload is not None:
        payload = upload.read()
        mime_type = upload.mimetype
    elif data.get('data_url'):
        mime_type, payload = ImageService.decode_data_url(data['data_url'])
    else:
        raise ValidationError("Please select an image file.")

    image = ContestService.upload_image(
        get_current_user(),
        contest,
        data.get('name'),
        payload,
        mime_type=mime_type,
        crop=ImageService.parse_crop(data),
    )
    return jsonify({
        'success': True,
        'message': f'{image.name} is now in the running.',
        'image': image.to_dict(),
    }), 201


@contests_bp.route('/<int:contest_id>/votes', methods=['GET'])
@require_login
def vote_status(contest_id):
    """Votes left today for the signed-in user"""
    contest = ContestService.get_contest(contest_id)
    ContestService.ensure_access(contest)
    status = VoteService.get_vote_status(get_current_user(), contest)
    return jsonify(dict(status, success=True))


@contests_bp.route('/<int:contest_id>/votes', methods=['POST'])
@require_login
def cast_vote(contest_id):
    contest = ContestService.get_contest(contest_id)
    ContestService.ensure_access(contest)
    ContestService.ensure_open(contest)

    image_id = VoteService.require_positive_id(request_data().get('image_id'))
    result = VoteService.cast_vote(get_current_user(), contest, image_id)
    ContestService.broadcast_images(contest)
    return jsonify(dict(result, success=True, message='Your vote has been counted.'))


@contests_bp.route('/leaderboard')
def leaderboard():
    """Top ten photos, optionally within one contest (?contest_id=)"""
    contest_id = _optional_int(request.args.get('contest_id'), 'contest id')
    if contest_id is not None:
        ContestService.ensure_access(ContestService.get_contest(contest_id))
    return jsonify({
        'success': True,
        'leaderboard': LeaderboardService.get_image_leaderboard(contest_id),
    })
