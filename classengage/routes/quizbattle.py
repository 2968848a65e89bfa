"""
Quiz Battle Routes
Host controls and player endpoints
"""
from flask import Blueprint, jsonify, request

from classengage.errors import ValidationError
from classengage.services import LeaderboardService, QuizBattleService
from classengage.utils import get_current_user, participant_key, require_login, request_data

quizbattle_bp = Blueprint('quizbattle', __name__)


def _flag(value, default=None):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'on', 'yes')


def _optional_int(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number: {value}")


def _host_payload(room):
    payload = QuizBattleService.state_payload(room)
    payload['questions'] = [
        dict(q.to_public_dict(), correct_answer=q.correct_answer) for q in room.questions
    ]
    payload['success'] = True
    return payload


# ================= HOST =================

@quizbattle_bp.route('/rooms', methods=['POST'])
@require_login
def create_room():
    data = request_data()
    room = QuizBattleService.create_room(
        get_current_user(),
        class_id=_optional_int(data.get('class_id')),
        time_limit=_optional_int(data.get('time_limit')),
        base_points=_optional_int(data.get('base_points')),
        auto_advance=_flag(data.get('auto_advance'), False),
        show_leaderboard=_flag(data.get('show_leaderboard'), True),
    )
    return jsonify(_host_payload(room)), 201


@quizbattle_bp.route('/rooms/<int:room_id>')
@require_login
def room_detail(room_id):
    room = QuizBattleService.get_host_room(get_current_user(), room_id)
    return jsonify(_host_payload(room))


@quizbattle_bp.route('/rooms/<int:room_id>/settings', methods=['PATCH', 'POST'])
@require_login
def update_settings(room_id):
    room = QuizBattleService.get_host_room(get_current_user(), room_id)
    data = request_data()
    QuizBattleService.update_settings(
        room,
        time_limit=_optional_int(data.get('time_limit')),
        base_points=_optional_int(data.get('base_points')),
        auto_advance=_flag(data.get('auto_advance')),
        show_leaderboard=_flag(data.get('show_leaderboard')),
    )
    return jsonify(_host_payload(room))


@quizbattle_bp.route('/rooms/<int:room_id>/questions', methods=['POST'])
@require_login
def load_questions(room_id):
    """Load questions from an uploaded CSV file or a 'csv' text field"""
    room = QuizBattleService.get_host_room(get_current_user(), room_id)

    upload = request.files.get('file')
    if upload is not None:
        try:
            text = upload.read().decode('utf-8-sig')
        except UnicodeDecodeError:
            raise ValidationError("Error reading file: CSV must be UTF-8 text.")
    else:
        text = request_data().get('csv')

    questions = QuizBattleService.load_questions(room, QuizBattleService.parse_csv(text))
    payload = _host_payload(room)
    payload['message'] = f'Loaded {len(questions)} questions.'
    return jsonify(payload)


@quizbattle_bp.route('/rooms/<int:room_id>/lobby', methods=['POST'])
@require_login
def open_lobby(room_id):
    room = QuizBattleService.get_host_room(get_current_user(), room_id)
    QuizBattleService.open_lobby(room)
    payload = _host_payload(room)
    payload['message'] = f'Room code: {room.code}'
    return jsonify(payload)


@quizbattle_bp.route('/rooms/<int:room_id>/next', methods=['POST'])
@require_login
def next_question(room_id):
    """Start the first question or advance to the next"""
    room = QuizBattleService.get_host_room(get_current_user(), room_id)
    QuizBattleService.next_question(room)
    return jsonify(_host_payload(room))


@quizbattle_bp.route('/rooms/<int:room_id>/end', methods=['POST'])
@require_login
def end_quiz(room_id):
    room = QuizBattleService.get_host_room(get_current_user(), room_id)
    QuizBattleService.end_quiz(room)
    return jsonify(_host_payload(room))


@quizbattle_bp.route('/rooms/<int:room_id>/questions/<int:question_id>/leaderboard')
@require_login
def question_leaderboard(room_id, question_id):
    room = QuizBattleService.get_host_room(get_current_user(), room_id)
    return jsonify({
        'success': True,
        'room_id': room.id,
        'question_id': question_id,
        'leaderboard': LeaderboardService.get_question_leaderboard(room.id, question_id),
    })


# ================= PLAYERS =================

@quizbattle_bp.route('/join', methods=['POST'])
def join():
    data = request_data()
    room, player = QuizBattleService.join(data.get('code'), data.get('name'), participant_key())
    return jsonify({
        'success': True,
        'message': f'Welcome, {player.name}! Waiting for the quiz to start.',
        'player': player.to_dict(),
        'room': QuizBattleService.state_payload(room),
    })


@quizbattle_bp.route('/play/<code>')
def play_state(code):
    room = QuizBattleService.find_room(code, include_ended=True)
    return jsonify(dict(QuizBattleService.state_payload(room), success=True))


@quizbattle_bp.route('/play/<code>/answer', methods=['POST'])
def answer(code):
    room = QuizBattleService.find_room(code)
    player = QuizBattleService.get_player(room, participant_key())
    result = QuizBattleService.submit_answer(room, player, request_data().get('answer'))
    return jsonify(dict(result, success=True))
