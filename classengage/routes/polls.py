"""
Live Poll Routes
Trainer session management plus participant voting and projector display
"""
from flask import Blueprint, jsonify, request

from classengage.errors import ValidationError
from classengage.services import PollService
from classengage.utils import get_current_user, participant_key, require_role, request_data

polls_bp = Blueprint('polls', __name__)


def _int_field(data, key):
    try:
        return int(data.get(key))
    except (TypeError, ValueError):
        raise ValidationError(f"A valid {key} is required.")


# ================= TRAINER =================

@polls_bp.route('/sessions', methods=['POST'])
@require_role('trainer')
def create_session():
    """Start (or reopen) the live poll session of a class"""
    class_id = _int_field(request_data(), 'class_id')
    poll_session = PollService.create_session(get_current_user(), class_id)
    return jsonify({'success': True, 'session': poll_session.to_dict()}), 201


@polls_bp.route('/sessions', methods=['GET'])
@require_role('trainer')
def get_session():
    """Admin view of the class session (?class_id=)"""
    class_id = _int_field(request.args, 'class_id')
    poll_session = PollService.get_class_session(get_current_user(), class_id)
    return jsonify({
        'success': True,
        'session': poll_session.to_dict() if poll_session else None,
    })


@polls_bp.route('/sessions/<int:session_id>/polls', methods=['POST'])
@require_role('trainer')
def create_poll(session_id):
    poll_session = PollService.get_owned_session(get_current_user(), session_id)
    data = request_data()
    poll = PollService.create_poll(poll_session, data.get('question'), data.get('options'))
    return jsonify({
        'success': True,
        'message': f'"{poll.question}" is ready to be activated.',
        'poll': poll.to_dict(),
    }), 201


@polls_bp.route('/sessions/<int:session_id>/polls/<int:poll_id>/toggle', methods=['POST'])
@require_role('trainer')
def toggle_poll(session_id, poll_id):
    """Activate or deactivate a poll"""
    poll_session = PollService.get_owned_session(get_current_user(), session_id)
    poll = PollService.toggle_poll(poll_session, poll_id)
    return jsonify({
        'success': True,
        'poll': poll.to_dict(),
        'active_poll_id': poll_session.active_poll_id,
    })


@polls_bp.route('/sessions/<int:session_id>/polls/<int:poll_id>', methods=['DELETE'])
@require_role('trainer')
def delete_poll(session_id, poll_id):
    poll_session = PollService.get_owned_session(get_current_user(), session_id)
    PollService.delete_poll(poll_session, poll_id)
    return jsonify({'success': True, 'message': 'Poll Deleted'})


# ================= PARTICIPANTS =================

@polls_bp.route('/join/<code>')
def voter_view(code):
    """Active poll for participants, with whether they already voted"""
    poll_session = PollService.find_session_by_code(code)
    active = poll_session.active_poll
    if active is None:
        return jsonify({'success': True, 'code': poll_session.code, 'active_poll': None})

    voted = PollService.has_voted(active, participant_key())
    return jsonify({
        'success': True,
        'code': poll_session.code,
        'active_poll': {
            'id': active.id,
            'question': active.question,
            'options': [{'id': o.id, 'text': o.text} for o in active.options],
        },
        'has_voted': voted,
        'results': PollService.results(active) if voted else None,
    })


@polls_bp.route('/join/<code>/vote', methods=['POST'])
def vote(code):
    data = request_data()
    PollService.cast_vote(
        code,
        _int_field(data, 'poll_id'),
        _int_field(data, 'option_id'),
        participant_key(),
    )
    poll_session = PollService.find_session_by_code(code)
    return jsonify({
        'success': True,
        'message': 'Thank you for your participation.',
        'results': PollService.results(poll_session.active_poll),
    })


@polls_bp.route('/display/<code>')
def display(code):
    """Projector view"""
    poll_session = PollService.find_session_by_code(code)
    return jsonify(dict(PollService.display_payload(poll_session), success=True))
