# showreel/services/auth_service.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt

from showreel.errors import AuthError
from showreel.models.user import User

ALGORITHM = "HS256"
DEFAULT_EXPIRE_MINUTES = 7 * 24 * 60


class AuthService:
    """Issues and verifies stateless bearer tokens."""

    def __init__(self, secret: str, expire_minutes: int = DEFAULT_EXPIRE_MINUTES):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self.secret = secret
        self.expire_minutes = expire_minutes

    def issue_token(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": user.id,
            "email": user.email,
            "role": user.role.value,
            "name": user.display_name,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def decode_token(self, token: str) -> Dict[str, Any]:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError as exc:
            raise AuthError("Token has expired") from exc
        except JWTError as exc:
            raise AuthError("Invalid token") from exc
        if not claims.get("sub") or not claims.get("role"):
            raise AuthError("Invalid token")
        return claims
