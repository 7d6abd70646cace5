# 导入所有表，确保 Base.metadata 完整
from showreel.models.user import User
from showreel.models.project import Project
from showreel.models.video_upload import VideoUpload
from showreel.models.category import Category
from showreel.models.biography import Biography
from showreel.models.contact import ContactSettings, ContactSubmission

__all__ = [
    "User",
    "Project",
    "VideoUpload",
    "Category",
    "Biography",
    "ContactSettings",
    "ContactSubmission",
]
