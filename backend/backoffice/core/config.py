# 环境变量和配置
# pydantic‑settings 读取 .env = core/config.py

from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 本机直接跑 uvicorn 时（不走 Docker），才会用到 model_config.env_file=".env"：
# 此时它会读取 backend/.env

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # ========= project config =========
    PROJECT_NAME: str = "Inventory Back Office"
    ENVIRONMENT: str = "dev"
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = Field("INFO", alias="LOG_LEVEL")


    # ========= 鉴权 / CORS =========
    # token 由外部登录服务签发，这里只负责校验
    SECRET_KEY: str = Field("CHANGE_ME", alias="SECRET_KEY")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(480, alias="ACCESS_TOKEN_EXPIRE_MINUTES")   # 8h
    COOKIE_NAME: str = Field("access_token", alias="COOKIE_NAME")
    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"
    ADMIN_ROLE: str = Field("admin", alias="ADMIN_ROLE")


    # ========= Database =========
    # 容器内默认连 docker 网络里的 "db" 服务
    DATABASE_URL: str = Field(
        default="postgresql+psycopg://backoffice:backoffice@db:5432/backoffice",
        alias="DATABASE_URL",
    )


    # ========= celery config =========
    CELERY_BROKER_URL: Optional[str] = None
    CELERY_RESULT_BACKEND: Optional[str] = None
    CELERY_TIMEZONE: str = "America/Santo_Domingo"


    # ========= pricing config =========
    # 百分比输入的合法区间（闭区间）
    PRICING_MARKUP_MIN: float = Field(0, alias="PRICING_MARKUP_MIN")
    PRICING_MARKUP_MAX: float = Field(1000, alias="PRICING_MARKUP_MAX")
    # tolerant: 单个商品异常记为 skipped 继续跑；strict: 第一个异常就整批回滚
    PRICING_BACKFILL_MODE: Literal["tolerant", "strict"] = Field("tolerant", alias="PRICING_BACKFILL_MODE")


settings = Settings()  # 只从环境读取（含 .env）
