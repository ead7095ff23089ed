from flask import request, jsonify, current_app
from werkzeug.security import check_password_hash
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from datetime import datetime, timedelta, timezone
import uuid
from . import bp
from ..model import User, RefreshToken
from ..extensions import db
from ..utils.api import api_ok, api_error


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- helper: create & persist a token pair ---
def _issue_tokens(user_id: int):
    access_token = create_access_token(identity=str(user_id))
    refresh_token_str = str(uuid.uuid4())
    refresh_row = RefreshToken(
        user_id=user_id,
        token=refresh_token_str,
        expires_at=_utcnow() + timedelta(days=current_app.config.get("REFRESH_TOKEN_DAYS", 7)),
    )
    db.session.add(refresh_row)
    return access_token, refresh_token_str


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify(api_error("Email and password are required")), 400

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return jsonify(api_error("Invalid email or password")), 401

    access_token, token_str = _issue_tokens(user.id)
    db.session.commit()

    return jsonify(api_ok(
        "You've logged in successfully",
        data={
            "user": user.as_dict(),
            "token": access_token,
            "refresh_token": token_str,
        }
    )), 200


@bp.get("/me")
@jwt_required()
def me():
    uid = get_jwt_identity()
    user = db.session.get(User, int(uid))
    if not user:
        return jsonify(api_error("user not found")), 404
    return jsonify(api_ok("me", data={"user": user.as_dict()})), 200


@bp.post("/refresh")
def refresh():
    data = request.get_json(silent=True) or {}
    token_str = data.get("refresh_token")
    if not token_str:
        return jsonify(api_error("refresh_token is required")), 400

    refresh_row = RefreshToken.query.filter_by(token=token_str).first()
    if not refresh_row or refresh_row.expires_at < _utcnow():
        return jsonify(api_error("Invalid or expired refresh token")), 401

    user_id = refresh_row.user_id

    # ROTATE: make the old refresh token single-use by removing it
    db.session.delete(refresh_row)
    db.session.flush()

    new_access, new_refresh = _issue_tokens(user_id)
    db.session.commit()

    return jsonify(api_ok(
        "Token refreshed",
        data={
            "token": new_access,
            "refresh_token": new_refresh
        }
    )), 200
