# create_admin.py
"""
创建 / 提升管理员账号
⚠️ 仅用于开发 / 手动维护

    python create_admin.py admin@example.com 'a-strong-password' --name "Admin"
"""
import argparse
import os

from showreel.db.enums import UserRole
from showreel.db.init_db import init_db
from showreel.db.session import configure_engine, get_session
from showreel.services.user_service import UserService


def create_admin(email: str, password: str, display_name: str) -> None:
    db = get_session()
    try:
        user_service = UserService(db)

        existing = user_service.get_user_by_email(email)
        if existing:
            user_service.reset_password(user_id=existing.id, new_password=password)
            user_service.promote_to_admin(user_id=existing.id)
            print(f"⚠️ 用户 '{email}' 已存在，已重置密码并设为管理员")
        else:
            user_service.create_user(
                email=email,
                password=password,
                display_name=display_name,
                role=UserRole.admin,
            )
            print(f"✅ 管理员 '{email}' 创建完成")

        db.commit()

    except Exception as e:
        db.rollback()
        print(f"❌ 创建失败: {e}")
        raise
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default="Admin")
    parser.add_argument("--database-url", default=os.getenv("DATABASE_URL", "sqlite:///showreel.db"))
    args = parser.parse_args()

    configure_engine(args.database_url)
    init_db()
    create_admin(args.email, args.password, args.name)


if __name__ == "__main__":
    main()
