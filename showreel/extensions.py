# showreel/extensions.py
"""
Per-app collaborators.
The app factory builds them once and stores them in ``app.extensions``;
routes fetch them through the accessors below.
"""
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from showreel.services.auth_service import AuthService
from showreel.services.cache_service import CacheInvalidationPolicy, TTLCache
from showreel.services.mail_service import MailService
from showreel.services.media_store import MediaStore


def _config_limit(config_key: str):
    def limit_value() -> str:
        return current_app.config[config_key]
    return limit_value


# 全局默认限流 + 上传 / 管理操作的共享限流；testing 配置下 RATELIMIT_ENABLED=False
limiter = Limiter(key_func=get_remote_address, default_limits=[_config_limit("GENERAL_RATE_LIMIT")])

upload_limit = limiter.shared_limit(_config_limit("UPLOAD_RATE_LIMIT"), scope="upload", override_defaults=False)
admin_limit = limiter.shared_limit(_config_limit("ADMIN_RATE_LIMIT"), scope="admin", override_defaults=False)
contact_limit = limiter.limit(_config_limit("CONTACT_RATE_LIMIT"))

EXTENSION_KEY = "showreel"


def _registry() -> dict:
    return current_app.extensions[EXTENSION_KEY]


def get_cache() -> TTLCache:
    return _registry()["cache"]


def get_cache_policy() -> CacheInvalidationPolicy:
    return _registry()["cache_policy"]


def get_media_store() -> MediaStore:
    return _registry()["media_store"]


def get_mail_service() -> MailService:
    return _registry()["mail_service"]


def get_auth_service() -> AuthService:
    return _registry()["auth_service"]
