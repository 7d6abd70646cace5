# showreel/schemas/project.py
from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field, field_validator, model_validator

from showreel.db.enums import ProjectStatus
from showreel.schemas.base import CamelModel

_OPTIONAL_TEXT_FIELDS = ("description", "category", "client", "agency", "role")


def _max_year() -> int:
    return datetime.now().year + 1


def _normalize_tags(value: Union[None, str, List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    return [str(tag).strip() for tag in value if str(tag).strip()]


class _ProjectFields(CamelModel):
    description: Optional[str] = None
    category: Optional[str] = None
    client: Optional[str] = None
    agency: Optional[str] = None
    role: Optional[str] = None
    tags: Optional[List[str]] = None
    year: Optional[int] = None
    duration: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data):
        # multipart 表单里未填写的字段是空字符串
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and value.strip() == "" and key != "title" else value)
                for key, value in data.items()
            }
        return data

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        return _normalize_tags(value)

    @field_validator(*_OPTIONAL_TEXT_FIELDS)
    @classmethod
    def _strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("year")
    @classmethod
    def _check_year(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not (1900 <= value <= _max_year()):
            raise ValueError(f"Year must be between 1900 and {_max_year()}")
        return value


class ProjectCreate(_ProjectFields):
    title: str
    featured: bool = False
    status: ProjectStatus = ProjectStatus.draft

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class ProjectUpdate(_ProjectFields):
    """Partial update: only fields present in the payload are applied."""
    title: Optional[str] = None
    featured: Optional[bool] = None
    status: Optional[ProjectStatus] = None
    display_order: Optional[int] = Field(default=None, ge=0)
    version: Optional[int] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("Title cannot be empty")
        value = value.strip()
        if not value:
            raise ValueError("Title cannot be empty")
        return value


class ReorderItem(CamelModel):
    id: int
    display_order: int = Field(ge=0)
    version: Optional[int] = None


class ReorderRequest(CamelModel):
    updates: List[ReorderItem]

    @field_validator("updates")
    @classmethod
    def _unique_ids(cls, updates: List[ReorderItem]) -> List[ReorderItem]:
        seen = set()
        for item in updates:
            if item.id in seen:
                raise ValueError(f"Project {item.id} appears more than once")
            seen.add(item.id)
        return updates
