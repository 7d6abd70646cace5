# showreel/routes/guards.py
from functools import wraps

from flask import g, request

from showreel.db.enums import UserRole
from showreel.db.session import get_session
from showreel.errors import AuthError, ForbiddenError
from showreel.extensions import get_auth_service
from showreel.services.user_service import UserService


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Missing bearer token")
    return token.strip()


def _authenticate() -> dict:
    '''
    校验 token 后再查一次账号：停用或被降级的用户，旧 token 立即失效
    :return: claims，role 以数据库当前值为准
    '''
    claims = get_auth_service().decode_token(_bearer_token())

    db = get_session()
    try:
        user = UserService(db).get_user_by_id(claims["sub"])
        if user is None or not user.is_active:
            raise AuthError("User account is no longer active")
        return {**claims, "role": user.role.value, "email": user.email}
    finally:
        db.close()


def login_required(view):
    """校验 token，claims 放入 g.current_user"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.current_user = _authenticate()
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    """在 login_required 基础上要求 role=admin"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        claims = _authenticate()
        if claims["role"] != UserRole.admin.value:
            raise ForbiddenError("Admin access required")
        g.current_user = claims
        return view(*args, **kwargs)
    return wrapper


def current_user_id():
    user = g.get("current_user")
    return user.get("sub") if user else None
