"""User account controllers."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from taskflow.core.context import current_context
from taskflow.core.errors import NotFoundOrForbidden
from taskflow.core.users.schemas import (
    PasswordChangeRequest,
    ProfileUpdateRequest,
    SettingsUpdateRequest,
    serialize_user,
)
from taskflow.core.users.services import (
    change_password,
    get_user,
    get_user_stats,
    hard_delete_user,
    soft_delete_user,
    update_profile,
    update_settings,
)

user_api_bp = Blueprint("user_api", __name__)


def _user_response(user):
    if not user:
        raise NotFoundOrForbidden("user not found")
    return jsonify({"ok": True, "user": serialize_user(user).model_dump()})


@user_api_bp.get("/me")
@jwt_required()
def api_me():
    return _user_response(get_user(current_context(), int(get_jwt_identity())))


@user_api_bp.patch("/me")
@jwt_required()
def api_update_profile():
    data = ProfileUpdateRequest.model_validate(request.get_json(silent=True) or {})
    user = update_profile(current_context(), int(get_jwt_identity()), **data.model_dump(exclude_unset=True))
    return _user_response(user)


@user_api_bp.put("/me/settings")
@jwt_required()
def api_update_settings():
    data = SettingsUpdateRequest.model_validate(request.get_json(silent=True) or {})
    user = update_settings(current_context(), int(get_jwt_identity()), data.settings)
    return _user_response(user)


@user_api_bp.post("/me/password")
@jwt_required()
def api_change_password():
    data = PasswordChangeRequest.model_validate(request.get_json(silent=True) or {})
    if not change_password(
        current_context(),
        int(get_jwt_identity()),
        current_password=data.current_password,
        new_password=data.new_password,
    ):
        raise NotFoundOrForbidden("user not found")
    return jsonify({"ok": True})


@user_api_bp.delete("/me")
@jwt_required()
def api_delete_account():
    """Soft delete by default; ``?hard=true`` removes the account and its data."""
    hard = request.args.get("hard", "").lower() in {"1", "true", "yes"}
    ctx = current_context()
    user_id = int(get_jwt_identity())
    deleted = hard_delete_user(ctx, user_id) if hard else soft_delete_user(ctx, user_id)
    if not deleted:
        raise NotFoundOrForbidden("user not found")
    return jsonify({"ok": True, "hard": hard})


@user_api_bp.get("/me/stats")
@jwt_required()
def api_user_stats():
    return jsonify({"ok": True, "stats": get_user_stats(current_context(), int(get_jwt_identity()))})
