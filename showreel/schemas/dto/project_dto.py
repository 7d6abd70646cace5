from showreel.models.project import Project
from showreel.schemas.base import BaseDTO
from typing import List, Optional
from datetime import datetime


class ProjectDTO(BaseDTO):
    id: int
    title: str
    description: Optional[str]
    category: Optional[str]
    client: Optional[str]
    agency: Optional[str]
    role: Optional[str]
    tags: List[str] = []
    year: Optional[int]
    duration: Optional[int]

    video_url: Optional[str]
    thumbnail_url: Optional[str]

    # 状态机核心字段
    status: str
    featured: bool
    display_order: int
    version: int

    created_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_orm_model(cls, project: Project, *, display_order: int = 0) -> "ProjectDTO":
        return cls(
            id=project.id,
            title=project.title,
            description=project.description,
            category=project.category,
            client=project.client,
            agency=project.agency,
            role=project.role,
            tags=project.tag_list,
            year=project.year,
            duration=project.duration,
            video_url=project.video_url,
            thumbnail_url=project.thumbnail_url,
            status=project.status.value,
            featured=bool(project.featured),
            display_order=display_order,
            version=project.version,
            created_by=project.created_by,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class PortfolioStatsDTO(BaseDTO):
    total_projects: int
    featured_projects: int
    categories: List[str]
    latest_project: Optional[ProjectDTO]
