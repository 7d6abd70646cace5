from showreel.models.biography import Biography
from showreel.schemas.base import BaseDTO
from typing import List, Optional
from datetime import datetime


class BiographyDTO(BaseDTO):
    hero_title: Optional[str] = None
    bio_text: Optional[str] = None
    locations: List[str] = []
    courses: List[str] = []
    clients: List[str] = []
    member_of: List[str] = []
    skills: List[str] = []
    profile_image_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, bio: Optional[Biography]) -> "BiographyDTO":
        if bio is None:
            return cls()
        return cls(
            hero_title=bio.hero_title,
            bio_text=bio.bio_text,
            locations=bio.locations or [],
            courses=bio.courses or [],
            clients=bio.clients or [],
            member_of=bio.member_of or [],
            skills=bio.skills or [],
            profile_image_url=bio.profile_image_url,
            updated_at=bio.updated_at,
        )
