#!/usr/bin/env python3
from __future__ import annotations
import sys, argparse

from sqlalchemy import select
from sqlalchemy.orm import Session
from backoffice.core.config import settings
from backoffice.core.security import create_access_token
from backoffice.db.model.user import User
from backoffice.db.session import SessionLocal, transaction


'''
本地/测试环境用：确保有一个管理员用户，并打印一枚可放进 Cookie 的 JWT
    - 正式环境的用户和 token 由外部登录服务维护，这里不涉及密码
    - 用法：python scripts/create_admin_user.py --username admin --full-name "Admin"
'''
def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Ensure an admin user exists and print an access token for it.")
    ap.add_argument("--username", default="admin")
    ap.add_argument("--full-name", default="Admin")
    ap.add_argument("--minutes", type=int, default=None, help="Token lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)")
    args = ap.parse_args(argv)

    db: Session = SessionLocal()
    try:
        with transaction(db):
            user = db.scalars(select(User).where(User.username == args.username)).first()
            if user is None:
                user = User(username=args.username, full_name=args.full_name, role=settings.ADMIN_ROLE, is_active=True)
                db.add(user)
                db.flush()
                print(f"Admin created id={user.id}", file=sys.stderr)
            elif user.role != settings.ADMIN_ROLE:
                user.role = settings.ADMIN_ROLE
                print(f"User {user.username} promoted to {settings.ADMIN_ROLE}", file=sys.stderr)
            user_id, username = user.id, user.username
    finally:
        db.close()

    token = create_access_token({"user_id": user_id, "username": username}, expires_minutes=args.minutes)
    print(f"{settings.COOKIE_NAME}={token}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
