from showreel.models.user import User
from showreel.schemas.base import BaseDTO
from typing import Optional


class UserDTO(BaseDTO):
    id: str
    email: str
    display_name: Optional[str]
    role: str

    @classmethod
    def from_orm_model(cls, user: User) -> "UserDTO":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=user.role.value,
        )
