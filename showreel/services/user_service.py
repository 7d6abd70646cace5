# showreel/services/user_service.py
from uuid import uuid4
from typing import Optional

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from showreel.db.enums import UserRole
from showreel.errors import AuthError, ConflictError, NotFoundError
from showreel.models.user import User


class UserService:
    """
    Admin accounts.
    Provides:
    - registration
    - authentication
    - password reset
    - user lookup
    - deactivation

    Token issuing lives in AuthService.
    """

    def __init__(self, db: Session):
        self.db = db

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _hash_password(self, password: str) -> str:
        '''Hash a password using bcrypt'''
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(),
        ).decode("utf-8")

    def _verify_password(self, password: str, password_hash: str) -> bool:
        '''verify a password against its hash'''
        return bcrypt.checkpw(
            password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    # ======================================================
    # 👤 User CRUD
    # ======================================================

    def create_user(
        self,
        *,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        role: UserRole = UserRole.user,
    ) -> User:
        """
        Register a new user.

        :param email: Login email (unique, case-insensitive)
        :type email: str
        :param password: Plaintext password
        :type password: str
        :param display_name: Display name for the user
        :type display_name: Optional[str]
        :param role: Role carried in issued tokens
        :type role: UserRole
        """
        email = self._normalize_email(email)

        # 1️⃣ email 唯一性校验
        if self.get_user_by_email(email) is not None:
            raise ConflictError(f"User '{email}' already exists")

        # 2️⃣ 创建用户
        user = User(
            id=str(uuid4()),
            email=email,
            display_name=display_name,
            password_hash=self._hash_password(password),
            role=role,
            is_active=True,
        )

        self.db.add(user)
        self.db.flush()

        return user

    def authenticate(
        self,
        *,
        email: str,
        password: str,
    ) -> User:
        """
        Authenticate user by email + password.
        Returns User if successful.

        :param email: Login email
        :type email: str
        :param password: Plaintext password
        :type password: str
        """
        user = self.get_user_by_email(email)

        if not user or not self._verify_password(password, user.password_hash):
            raise AuthError("Invalid credentials")

        if not user.is_active:
            raise AuthError("User account is deactivated")

        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.scalar(
            select(User).where(func.lower(User.email) == self._normalize_email(email))
        )

    # ======================================================
    # 🔁 Account maintenance
    # ======================================================

    def reset_password(
        self,
        *,
        user_id: str,
        new_password: str,
    ) -> None:
        """
        Reset password directly (admin CLI).

        :param user_id: ID of the user to reset password for
        :type user_id: str
        :param new_password: New plaintext password
        :type new_password: str
        """
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        user.password_hash = self._hash_password(new_password)

    def promote_to_admin(self, *, user_id: str) -> User:
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        user.role = UserRole.admin
        return user

    def deactivate_user(self, *, user_id: str) -> None:
        """
        Deactivate (soft delete) user.

        :param user_id: ID of the user to deactivate
        :type user_id: str
        """
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        user.is_active = False
