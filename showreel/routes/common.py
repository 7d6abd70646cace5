# showreel/routes/common.py
import json
from typing import Optional, Type, TypeVar

from flask import request
from pydantic import BaseModel

from showreel.errors import ValidationError
from showreel.services.upload_validation import UploadedFile

M = TypeVar("M", bound=BaseModel)

DEFAULT_FRAME_TIME = 1.0


def json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def form_payload() -> dict:
    '''
    multipart 请求的字段：优先取 JSON 字符串字段 ``data``，否则取普通表单字段
    '''
    raw = request.form.get("data")
    if raw:
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise ValidationError("Field 'data' must be valid JSON", field="data") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Field 'data' must be a JSON object", field="data")
        return payload
    return {
        key: value for key, value in request.form.items()
        if key not in ("frameTime", "projectId")
    }


def request_payload() -> dict:
    if request.mimetype == "multipart/form-data":
        return form_payload()
    return json_body()


def parse(model: Type[M], payload: dict) -> M:
    # pydantic.ValidationError 由全局 handler 转成 400
    return model.model_validate(payload)


def uploaded_file(field: str) -> Optional[UploadedFile]:
    return UploadedFile.from_storage(request.files.get(field))


def frame_time() -> float:
    raw = request.form.get("frameTime")
    if raw in (None, ""):
        return DEFAULT_FRAME_TIME
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValidationError("frameTime must be a number of seconds", field="frameTime") from exc
    if value < 0:
        raise ValidationError("frameTime must not be negative", field="frameTime")
    return value


def optional_int_arg(source, name: str) -> Optional[int]:
    raw = source.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be an integer", field=name) from exc
