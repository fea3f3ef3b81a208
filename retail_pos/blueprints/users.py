"""
User management blueprint.

All routes require the admin permission.
"""
from flask import Blueprint, g, jsonify, request

from retail_pos.decorators.permissions import require_permission
from retail_pos.middleware import get_state, json_response, persist
from retail_pos.services import auth_service
from retail_pos.services.storage_service import USERS, CURRENT_USER

users_bp = Blueprint('users', __name__, url_prefix='/users')


@users_bp.route('', methods=['GET'])
@require_permission('admin')
def list_users():
    """Active users first, then inactive ones."""
    state = get_state()
    with state.lock:
        users = sorted(state.users, key=lambda u: not u.is_active)
        return jsonify({'users': [u.to_public_dict() for u in users]})


@users_bp.route('', methods=['POST'])
@require_permission('admin')
def create_user():
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        user = auth_service.add_user(state.users, g.user, data)
        saved = persist(USERS)
    return json_response({'message': 'User added successfully', 'user': user.to_public_dict()}, saved, 201)


@users_bp.route('/<int:user_id>', methods=['PUT'])
@require_permission('admin')
def update_user(user_id):
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        user = auth_service.update_user(state.users, g.user, user_id, data)
        saved = persist(USERS, CURRENT_USER)
    return json_response({'message': 'User updated successfully', 'user': user.to_public_dict()}, saved)


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@require_permission('admin')
def delete_user(user_id):
    state = get_state()
    with state.lock:
        auth_service.delete_user(state.users, g.user, user_id)
        saved = persist(USERS)
    return json_response({'message': 'User deleted successfully'}, saved)
