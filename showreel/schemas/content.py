# showreel/schemas/content.py
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from showreel.schemas.base import CamelModel


class LoginRequest(CamelModel):
    email: str
    password: str


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    slug: Optional[str] = Field(default=None, max_length=50)
    display_order: int = 0

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Category name must be 1-50 characters")
        return value


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=50)
    display_order: Optional[int] = None


class BiographyUpdate(CamelModel):
    hero_title: Optional[str] = None
    bio_text: Optional[str] = None
    locations: Optional[List[str]] = None
    courses: Optional[List[str]] = None
    clients: Optional[List[str]] = None
    member_of: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    profile_image_url: Optional[str] = None


class ContactSettingsUpdate(CamelModel):
    cta_text: str = Field(min_length=1)
    destination_email: EmailStr
    form_enabled: bool


class ContactForm(CamelModel):
    name: Optional[str] = Field(default=None, max_length=100)
    email: EmailStr
    message: str = Field(min_length=10)


class VideoUploadUpdate(CamelModel):
    description: Optional[str] = None
