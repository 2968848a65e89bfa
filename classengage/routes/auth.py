"""
Authentication Routes
Handles registration, login, logout and manager/trainer links
"""
from flask import Blueprint, jsonify, request, session

from classengage.services import AccountService
from classengage.utils import get_current_user, require_login, require_role, request_data

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    """User registration"""
    data = request_data()
    user = AccountService.register(
        email=data.get('email'),
        password=data.get('password'),
        display_name=data.get('display_name'),
        role=data.get('role', 'student'),
    )
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Email/password login"""
    data = request_data()
    user = AccountService.authenticate(data.get('email'), data.get('password'))

    # Keep guest identity so poll votes and quiz players survive sign-in
    guest_id = session.get('guest_id')
    session.clear()
    if guest_id:
        session['guest_id'] = guest_id
    session['user_id'] = user.id
    session['role'] = user.role

    return jsonify({'success': True, 'message': 'Welcome back!', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """User logout"""
    session.clear()
    return jsonify({'success': True, 'message': 'Logged out successfully.'})


@auth_bp.route('/me')
@require_login
def me():
    """Current account"""
    return jsonify({'success': True, 'user': get_current_user().to_dict()})


@auth_bp.route('/manager/trainers', methods=['GET', 'POST'])
@require_role('manager')
def manager_trainers():
    """List or add the trainers a manager oversees"""
    manager = get_current_user()
    if request.method == 'POST':
        trainer = AccountService.add_trainer(manager, request_data().get('email'))
        return jsonify({
            'success': True,
            'message': f'Trainer {trainer.display_name} added.',
            'trainer': trainer.to_dict(),
        })

    return jsonify({
        'success': True,
        'trainers': [t.to_dict() for t in AccountService.list_trainers(manager)],
    })
