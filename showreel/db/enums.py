# showreel/db/enums.py
import enum

# Project related enums
class ProjectStatus(enum.Enum):
    '''
    Project 状态机
        draft -> published      (video upload completed)
        draft -> processing     (video attached outside the creation call)
        processing -> published (explicit admin publish)
        * -> draft              (unpublish)
    '''
    draft = "draft"
    processing = "processing"
    published = "published"


# VideoUpload related enums
class UploadStatus(enum.Enum):
    uploading = "uploading"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class MediaKind(enum.Enum):
    video = "video"
    image = "image"


# ContactSubmission related enums
class SubmissionStatus(enum.Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


# User related enums
class UserRole(enum.Enum):
    admin = "admin"
    user = "user"
