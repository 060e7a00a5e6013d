from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt, JWTError
from backoffice.core.config import settings


ALGORITHM = "HS256"


'''
生成 JWT
  - 正式 token 由外部登录服务签发；这里只给运维脚本/测试用，密钥与算法需与签发方一致
'''
def create_access_token(subject: dict[str, Any], expires_minutes: int | None = None) -> str:
    expire = datetime.now(tz=timezone.utc) + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode = {"exp": expire, **subject}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
