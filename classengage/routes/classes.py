"""
Class Routes
Trainer class management, learner enrollment, rosters and notes
"""
from flask import Blueprint, jsonify

from classengage.services import ClassService
from classengage.utils import get_current_user, require_login, require_role, request_data

classes_bp = Blueprint('classes', __name__)


@classes_bp.route('', methods=['GET'])
@require_login
def list_classes():
    """Classes taught by a trainer, or joined by a learner"""
    user = get_current_user()
    if user.role == 'trainer':
        classes = ClassService.list_trainer_classes(user)
    else:
        classes = ClassService.list_student_classes(user)
    return jsonify({'success': True, 'classes': [c.to_dict() for c in classes]})


@classes_bp.route('', methods=['POST'])
@require_role('trainer')
def create_class():
    """Create a class with a fresh invite code"""
    classroom = ClassService.create_class(get_current_user(), request_data().get('name'))
    return jsonify({
        'success': True,
        'message': f'Your class "{classroom.name}" is ready.',
        'class': classroom.to_dict(),
    }), 201


@classes_bp.route('/join', methods=['POST'])
@require_role('student')
def join_class():
    """Join a class by invite code"""
    result = ClassService.join_class(get_current_user(), request_data().get('invite_code'))
    return jsonify({
        'success': result['success'],
        'message': result['message'],
        'class': result['class'].to_dict(),
    })


@classes_bp.route('/<int:class_id>')
@require_login
def class_dashboard(class_id):
    payload = ClassService.dashboard(get_current_user(), class_id)
    return jsonify(dict(payload, success=True))


@classes_bp.route('/<int:class_id>/roster')
@require_role('trainer')
def roster(class_id):
    classroom, learners = ClassService.roster(get_current_user(), class_id)
    return jsonify({
        'success': True,
        'class': classroom.to_dict(),
        'learners': [learner.to_dict() for learner in learners],
    })


@classes_bp.route('/<int:class_id>/students/<int:student_id>')
@require_role('trainer')
def student_detail(class_id, student_id):
    student, notes = ClassService.student_detail(get_current_user(), class_id, student_id)
    return jsonify({
        'success': True,
        'student': student.to_dict(),
        'notes': [note.to_dict() for note in notes],
    })


@classes_bp.route('/<int:class_id>/students/<int:student_id>/notes', methods=['POST'])
@require_role('trainer')
def add_note(class_id, student_id):
    note = ClassService.add_note(
        get_current_user(), class_id, student_id, request_data().get('note')
    )
    return jsonify({'success': True, 'message': 'Note Added', 'note': note.to_dict()}), 201
