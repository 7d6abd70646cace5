# showreel/errors.py
from enum import Enum
from typing import Any, Dict, List, Optional

from showreel.schemas.error_response import ErrorResponse


class ErrorKind(str, Enum):
    '''
    API 错误的结构化分类，前端据此渲染可操作的提示

    VALIDATION_ERROR: 输入缺失或格式错误。400，不自动重试。
    AUTH_ERROR: token 缺失、无效或过期。401，需要重新登录。
    PERMISSION_DENIED: 已登录但角色不足。403。
    NOT_FOUND: 引用的实体不存在。404。
    CONFLICT: 乐观锁版本不匹配，写入基于过期数据。409，刷新后重试。
    UPLOAD_ERROR: 媒体上传失败，带 cause 子类型。
    DEPENDENCY_ERROR: 辅助依赖（邮件）不可用，核心流程不受影响。
    SERVICE_UNAVAILABLE: 功能被管理员关闭。503。
    SYSTEM_ERROR: 未分类异常。500，对客户端隐藏细节。
    '''
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    RATE_LIMITED = "RATE_LIMITED"
    SYSTEM_ERROR = "SYSTEM_ERROR"


class UploadErrorCause(str, Enum):
    TOO_LARGE = "TOO_LARGE"
    REMOTE_TIMEOUT = "REMOTE_TIMEOUT"
    REMOTE_QUOTA_EXCEEDED = "REMOTE_QUOTA_EXCEEDED"
    UNKNOWN = "UNKNOWN"


_UPLOAD_STATUS = {
    UploadErrorCause.TOO_LARGE: 413,
    UploadErrorCause.REMOTE_TIMEOUT: 408,
    UploadErrorCause.REMOTE_QUOTA_EXCEEDED: 429,
    UploadErrorCause.UNKNOWN: 502,
}


class AppError(Exception):
    """Base for every error the API turns into a structured response."""

    kind: ErrorKind = ErrorKind.SYSTEM_ERROR
    status_code: int = 500

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_type=self.kind.value,
            message=self.message,
            details=self.details,
        )


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, *, field: Optional[str] = None, details: Optional[List[Dict[str, str]]] = None):
        if details is None and field is not None:
            details = [{"field": field, "message": message}]
        super().__init__(message, details=details)


class AuthError(AppError):
    kind = ErrorKind.AUTH_ERROR
    status_code = 401


class ForbiddenError(AppError):
    kind = ErrorKind.PERMISSION_DENIED
    status_code = 403


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class UnavailableError(AppError):
    kind = ErrorKind.SERVICE_UNAVAILABLE
    status_code = 503


class DependencyError(AppError):
    kind = ErrorKind.DEPENDENCY_ERROR
    status_code = 500


class UploadError(AppError):
    kind = ErrorKind.UPLOAD_ERROR

    def __init__(self, message: str, *, cause: UploadErrorCause = UploadErrorCause.UNKNOWN):
        super().__init__(message, details={"cause": cause.value})
        self.cause = cause
        self.status_code = _UPLOAD_STATUS[cause]
