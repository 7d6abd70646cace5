# showreel/routes/auth.py
from flask import Blueprint, g, jsonify

from showreel.db.session import get_session
from showreel.extensions import get_auth_service
from showreel.logger import get_logger
from showreel.routes.common import json_body, parse
from showreel.routes.guards import login_required
from showreel.schemas.content import LoginRequest
from showreel.schemas.dto.user_dto import UserDTO
from showreel.services.user_service import UserService

logger = get_logger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api')


@auth_bp.route('/login', methods=['POST'])
def login():
    """邮箱 + 密码登录，返回 bearer token"""
    data = parse(LoginRequest, json_body())

    db = get_session()
    try:
        user = UserService(db).authenticate(email=data.email, password=data.password)
        token = get_auth_service().issue_token(user)
        logger.info(f"User {user.email} logged in")
        return jsonify({"token": token, "user": UserDTO.from_orm_model(user).to_json()})
    finally:
        db.close()


@auth_bp.route('/auth/user', methods=['GET'])
@login_required
def current_user():
    claims = g.current_user
    return jsonify({
        "id": claims["sub"],
        "email": claims.get("email"),
        "role": claims["role"],
        "displayName": claims.get("name"),
    })
