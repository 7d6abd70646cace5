"""
数据库自动初始化检查模块
在应用启动时自动检查并执行必要的初始化步骤
"""
import os

from sqlalchemy import inspect

from showreel.db.enums import UserRole
from showreel.db.init_db import init_db
from showreel.db.session import get_engine, get_session
from showreel.logger import get_logger
from showreel.services.user_service import UserService

logger = get_logger(__name__)

REQUIRED_TABLES = {"users", "projects", "video_uploads"}


def check_tables_exist() -> bool:
    """检查数据库表是否存在"""
    tables = set(inspect(get_engine()).get_table_names())
    return REQUIRED_TABLES.issubset(tables)


def ensure_admin_user(email: str, password: str) -> bool:
    '''
    管理员不存在时创建
    :return: 是否新建了用户
    '''
    db = get_session()
    try:
        user_service = UserService(db)
        if user_service.get_user_by_email(email) is not None:
            logger.info(f"Admin user {email} already exists, skipping")
            return False

        user_service.create_user(
            email=email,
            password=password,
            display_name="Admin",
            role=UserRole.admin,
        )
        db.commit()
        logger.info(f"✅ Admin user created: {email}")
        return True
    except Exception:
        db.rollback()
        logger.exception("❌ Failed to create admin user")
        raise
    finally:
        db.close()


def auto_init():
    """
    自动初始化检查
    如果数据库未初始化，创建表；配置了 ADMIN_EMAIL / ADMIN_PASSWORD 时确保管理员存在
    """
    logger.info("🔍 Checking database initialization...")

    if not check_tables_exist():
        logger.info("📦 Tables missing, creating...")
        init_db()
        logger.info("✅ Tables created")
    else:
        logger.info("✅ Tables already exist")

    admin_email = os.getenv("ADMIN_EMAIL")
    admin_password = os.getenv("ADMIN_PASSWORD")
    if admin_email and admin_password:
        ensure_admin_user(admin_email, admin_password)
    else:
        logger.warning("ADMIN_EMAIL / ADMIN_PASSWORD not set; no admin user seeded")

    logger.info("🎉 Database initialization check complete")


if __name__ == "__main__":
    auto_init()
