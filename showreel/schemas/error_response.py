# showreel/schemas/error_response.py
from typing import Any, Optional
from showreel.schemas.base import CamelModel


class ErrorResponse(CamelModel):
    '''
    API 错误响应的统一结构

    ok: bool - 恒为 False
    error_type: str - ErrorKind 的值，前端据此选择提示文案
    message: str - 面向用户的可读信息
    details: Optional[Any] - 字段级错误列表或 {"cause": ...}
    '''
    ok: bool = False
    error_type: str
    message: str
    details: Optional[Any] = None

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
