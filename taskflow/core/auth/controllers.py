"""Auth HTTP controllers (API only)."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import (
    create_access_token,
    get_jwt,
    get_jwt_identity,
    jwt_required,
)

from taskflow.core.auth.auth_service import (
    authenticate_user,
    issue_tokens,
    register_user,
    revoke_token,
)
from taskflow.core.auth.schemas import LoginRequest, RegisterRequest
from taskflow.core.context import current_context
from taskflow.core.errors import NotFoundOrForbidden
from taskflow.core.users.schemas import serialize_user
from taskflow.core.users.services import get_user
from taskflow.extensions import limiter

auth_bp = Blueprint("auth_api", __name__)


@auth_bp.post("/register")
@limiter.limit("5/minute")
def register():
    payload = request.get_json(silent=True) or {}
    data = RegisterRequest.model_validate(payload)
    user = register_user(current_context(), data)
    return (
        jsonify({"ok": True, "user": serialize_user(user).model_dump(), **issue_tokens(user)}),
        201,
    )


@auth_bp.post("/login")
@limiter.limit("10/minute")
def login():
    payload = request.get_json(silent=True) or {}
    data = LoginRequest.model_validate(payload)
    user = authenticate_user(current_context(), data.email, data.password)
    if not user:
        return (
            jsonify({"ok": False, "error": "invalid_credentials", "message": "invalid email or password"}),
            401,
        )
    return jsonify({"ok": True, **issue_tokens(user), "user": serialize_user(user).model_dump()})


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
@limiter.limit("30/minute")
def refresh():
    identity = str(get_jwt_identity())
    return jsonify({"ok": True, "access_token": create_access_token(identity=identity)})


@auth_bp.post("/logout")
@jwt_required(verify_type=False)
def logout():
    jti = get_jwt().get("jti")
    if jti:
        revoke_token(current_context(), jti, int(get_jwt_identity()))
    return jsonify({"ok": True})


@auth_bp.get("/me")
@jwt_required()
def me():
    user = get_user(current_context(), int(get_jwt_identity()))
    if not user or user.is_deleted:
        raise NotFoundOrForbidden("user not found")
    return jsonify({"ok": True, "user": serialize_user(user).model_dump()})
