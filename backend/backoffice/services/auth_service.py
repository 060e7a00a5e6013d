from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from backoffice.db.session import get_db
from backoffice.core.security import decode_token
from backoffice.core.config import settings
from backoffice.db.model.user import User


COOKIE_NAME = settings.COOKIE_NAME


'''
获取当前登录用户
    - 从 Cookie 里拿到 token → decode_token(...)
    - 读出 user_id 回表找用户；停用用户视同未登录
    - token 由外部登录服务签发，这里只校验
'''
def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """从 Cookie 取出 JWT 并校验"""
    raw = request.cookies.get(COOKIE_NAME)
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    payload = decode_token(raw)
    if not payload or "user_id" not in payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.get(User, payload["user_id"])
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User disabled")
    return user


# 定价配置只允许管理员修改
def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != settings.ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return user
