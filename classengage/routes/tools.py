"""
Tool Routes
Randomizer wheel and Tickr countdown timer
"""
from flask import Blueprint, jsonify, request

from classengage.errors import ValidationError
from classengage.services import RandomizerService, TimerService
from classengage.utils import get_current_user, require_login, request_data

tools_bp = Blueprint('tools', __name__)


def _class_id(source):
    value = source.get('class_id')
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid class id.")


# ================= RANDOMIZER =================

@tools_bp.route('/randomizer', methods=['GET'])
@require_login
def get_wheel():
    wheel = RandomizerService.get_wheel(get_current_user(), _class_id(request.args))
    return jsonify({'success': True, 'wheel': wheel.to_dict()})


@tools_bp.route('/randomizer/entries', methods=['PUT', 'POST'])
@require_login
def set_entries():
    """Replace the wheel entries (list, or newline separated text)"""
    data = request_data()
    wheel = RandomizerService.get_wheel(get_current_user(), _class_id(data))

    entries = data.get('entries')
    if isinstance(entries, str):
        entries = entries.splitlines()
    elif entries is not None and not isinstance(entries, list):
        raise ValidationError("Entries must be a list of names.")

    RandomizerService.set_entries(wheel, entries)
    return jsonify({'success': True, 'wheel': wheel.to_dict()})


@tools_bp.route('/randomizer/roster', methods=['POST'])
@require_login
def load_roster():
    """Fill a class wheel with the learners of the class"""
    user = get_current_user()
    wheel = RandomizerService.get_wheel(user, _class_id(request_data()))
    RandomizerService.load_roster(user, wheel)
    return jsonify({'success': True, 'wheel': wheel.to_dict()})


@tools_bp.route('/randomizer/spin', methods=['POST'])
@require_login
def spin():
    data = request_data()
    wheel = RandomizerService.get_wheel(get_current_user(), _class_id(data))
    remove_winner = str(data.get('remove_winner', '')).lower() in ('1', 'true', 'on', 'yes')
    result = RandomizerService.spin(wheel, remove_winner=remove_winner)
    return jsonify(dict(result, success=True, wheel=wheel.to_dict()))


# ================= TIMER =================

@tools_bp.route('/timer', methods=['GET'])
@require_login
def timer_state():
    timer = TimerService.get_timer(get_current_user(), _class_id(request.args))
    return jsonify(dict(TimerService.snapshot(timer), success=True))


@tools_bp.route('/timer/class/<int:class_id>', methods=['GET'])
@require_login
def class_timer(class_id):
    """Timer as seen by the learners of a class"""
    timer = TimerService.find_class_timer(get_current_user(), class_id)
    return jsonify(dict(TimerService.snapshot(timer), success=True))


@tools_bp.route('/timer/<action>', methods=['POST'])
@require_login
def timer_action(action):
    """start, pause, resume or reset"""
    data = request_data()
    timer = TimerService.get_timer(get_current_user(), _class_id(data))

    if action == 'start':
        TimerService.start(
            timer,
            minutes=data.get('minutes'),
            seconds=data.get('seconds'),
            message=data.get('message'),
        )
    elif action == 'pause':
        TimerService.pause(timer)
    elif action == 'resume':
        TimerService.resume(timer)
    elif action == 'reset':
        TimerService.reset(timer)
    else:
        raise ValidationError(f"Unknown timer action: {action}")

    return jsonify(dict(TimerService.snapshot(timer), success=True))
