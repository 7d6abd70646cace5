'''“组装 Flask App 的工厂”（不启动，不产生行为副作用）
app_factory.py 负责把 Flask 实例拼好：注入配置，绑定数据库，创建缓存 / 媒体存储 / 邮件 / 鉴权等协作者，
注册蓝图和 JSON error handler，但不负责启动服务（不调用 app.run()）
会被 run.py、gunicorn 和单元测试调用'''
# showreel/app_factory.py
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from showreel.db.init_db import init_db
from showreel.db.session import configure_engine
from showreel.errors import AppError, ErrorKind, ValidationError
from showreel.extensions import EXTENSION_KEY, limiter
from showreel.logger import get_logger
from showreel.schemas.error_response import ErrorResponse
from showreel.services.auth_service import DEFAULT_EXPIRE_MINUTES, AuthService
from showreel.services.cache_service import CacheInvalidationPolicy, TTLCache
from showreel.services.mail_service import MailService
from showreel.services.media_store import DEFAULT_UPLOAD_TIMEOUT_SECONDS, CloudinaryMediaStore

# 加载环境变量
load_dotenv()

logger = get_logger(__name__)

# 获取项目根目录（使用绝对路径）
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# 100MB 视频上限由校验器报告（413 + TOO_LARGE），这里只兜底
DEFAULT_MAX_CONTENT_LENGTH = 110 * 1024 * 1024


def _base_config() -> Dict[str, Any]:
    secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    return {
        'SECRET_KEY': secret_key,
        'DATABASE_URL': os.getenv('DATABASE_URL', f"sqlite:///{os.path.join(BASE_DIR, 'showreel.db')}"),
        'JWT_SECRET': os.getenv('JWT_SECRET', secret_key),
        'JWT_EXPIRE_MINUTES': int(os.getenv('JWT_EXPIRE_MINUTES', DEFAULT_EXPIRE_MINUTES)),
        'CLOUDINARY_CLOUD_NAME': os.getenv('CLOUDINARY_CLOUD_NAME'),
        'CLOUDINARY_API_KEY': os.getenv('CLOUDINARY_API_KEY'),
        'CLOUDINARY_API_SECRET': os.getenv('CLOUDINARY_API_SECRET'),
        'UPLOAD_TIMEOUT_SECONDS': int(os.getenv('UPLOAD_TIMEOUT_SECONDS', DEFAULT_UPLOAD_TIMEOUT_SECONDS)),
        'SENDGRID_API_KEY': os.getenv('SENDGRID_API_KEY'),
        'SENDGRID_VERIFIED_SENDER': os.getenv('SENDGRID_VERIFIED_SENDER'),
        'GENERAL_RATE_LIMIT': os.getenv('GENERAL_RATE_LIMIT', '100 per 15 minutes'),
        'UPLOAD_RATE_LIMIT': os.getenv('UPLOAD_RATE_LIMIT', '10 per hour'),
        'ADMIN_RATE_LIMIT': os.getenv('ADMIN_RATE_LIMIT', '200 per 15 minutes'),
        'CONTACT_RATE_LIMIT': os.getenv('CONTACT_RATE_LIMIT', '5 per minute'),
        'MAX_CONTENT_LENGTH': int(os.getenv('MAX_CONTENT_LENGTH', DEFAULT_MAX_CONTENT_LENGTH)),
        'RATELIMIT_ENABLED': True,
        'RATELIMIT_STORAGE_URI': os.getenv('RATELIMIT_STORAGE_URI', 'memory://'),
        'DEBUG': os.getenv('FLASK_DEBUG', '0') == '1',
        'TESTING': False,
    }


_CONFIG_OVERRIDES = {
    'development': {'DEBUG': True},
    'production': {'DEBUG': False},
    'testing': {
        'TESTING': True,
        'DATABASE_URL': 'sqlite://',
        'JWT_SECRET': 'test-secret',
        'RATELIMIT_ENABLED': False,
    },
}


def create_app(config_name: str = 'development', overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """
    应用工厂函数

    :param config_name: development / production / testing
    :param overrides: 额外配置；也可注入协作者：
        MEDIA_STORE, MAIL_SERVICE（测试替身）
    """
    if config_name not in _CONFIG_OVERRIDES:
        raise ValueError(f"Unknown config '{config_name}'")

    app = Flask(__name__)
    app.config.update(_base_config())
    app.config.update(_CONFIG_OVERRIDES[config_name])
    app.config.update(overrides or {})

    # 数据库
    configure_engine(app.config['DATABASE_URL'])
    if app.config['TESTING']:
        init_db()

    _init_extensions(app)

    # 注册蓝图
    from showreel.routes.health import health_bp
    from showreel.routes.auth import auth_bp
    from showreel.routes.project import project_bp
    from showreel.routes.admin_project import admin_project_bp
    from showreel.routes.file import file_bp
    from showreel.routes.content import content_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(admin_project_bp)
    app.register_blueprint(file_bp)
    app.register_blueprint(content_bp)

    # 注册错误处理
    register_error_handlers(app)

    logger.info(f"App created (config={config_name})")
    return app


def _init_extensions(app: Flask) -> None:
    cache = TTLCache()
    media_store = app.config.get('MEDIA_STORE') or CloudinaryMediaStore(
        cloud_name=app.config['CLOUDINARY_CLOUD_NAME'],
        api_key=app.config['CLOUDINARY_API_KEY'],
        api_secret=app.config['CLOUDINARY_API_SECRET'],
        timeout=app.config['UPLOAD_TIMEOUT_SECONDS'],
    )
    mail_service = app.config.get('MAIL_SERVICE') or MailService.from_config(
        app.config['SENDGRID_API_KEY'],
        app.config['SENDGRID_VERIFIED_SENDER'],
    )

    app.extensions[EXTENSION_KEY] = {
        'cache': cache,
        'cache_policy': CacheInvalidationPolicy(cache),
        'media_store': media_store,
        'mail_service': mail_service,
        'auth_service': AuthService(app.config['JWT_SECRET'], app.config['JWT_EXPIRE_MINUTES']),
    }
    limiter.init_app(app)


def _error_json(response: ErrorResponse, status_code: int):
    return jsonify(response.to_json()), status_code


def register_error_handlers(app: Flask) -> None:
    """注册错误处理器：所有错误统一为 ErrorResponse JSON"""

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        if error.status_code >= 500:
            logger.error(f"{error.kind.value}: {error.message}")
        else:
            logger.info(f"{error.kind.value} ({error.status_code}): {error.message}")
        return _error_json(error.to_response(), error.status_code)

    @app.errorhandler(PydanticValidationError)
    def handle_validation_error(error: PydanticValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "body",
                "message": err["msg"].removeprefix("Value error, "),
            }
            for err in error.errors()
        ]
        message = details[0]["message"] if len(details) == 1 else "Invalid input"
        return _error_json(ValidationError(message, details=details).to_response(), 400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        kind = {
            401: ErrorKind.AUTH_ERROR,
            403: ErrorKind.PERMISSION_DENIED,
            404: ErrorKind.NOT_FOUND,
            409: ErrorKind.CONFLICT,
            413: ErrorKind.UPLOAD_ERROR,
            429: ErrorKind.RATE_LIMITED,
        }.get(error.code, ErrorKind.VALIDATION_ERROR if error.code < 500 else ErrorKind.SYSTEM_ERROR)
        if error.code == 429:
            # Flask-Limiter 的 description 是命中的限额，例如 "5 per 1 minute"
            logger.warning(f"Rate limit hit: {error.description}")
            response = ErrorResponse(
                error_type=kind.value,
                message="Too many requests, please try again later",
                details={"limit": error.description},
            )
            return _error_json(response, 429)
        response = ErrorResponse(error_type=kind.value, message=error.description or error.name)
        return _error_json(response, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception(f"Unhandled error: {error}")
        details = {"exception": repr(error)} if app.config.get('DEBUG') else None
        response = ErrorResponse(
            error_type=ErrorKind.SYSTEM_ERROR.value,
            message="Internal server error",
            details=details,
        )
        return _error_json(response, 500)
