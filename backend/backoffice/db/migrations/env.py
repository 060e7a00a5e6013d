# Alembic 入口：定价相关表（products / 采购单 / 三级加价配置 / users）

from __future__ import annotations

from alembic import context
from sqlalchemy import engine_from_config, pool
from logging.config import fileConfig
import logging

from backoffice.core.config import settings
from backoffice.db.base import Base
import backoffice.db.model  # noqa: F401  注册所有模型到 Base.metadata


config = context.config

# 连接串以 DATABASE_URL 为准，alembic.ini 里的只是占位
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name:
    fileConfig(config.config_file_name)
logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def _configure_kwargs(dialect_name: str) -> dict:
    return {
        "target_metadata": target_metadata,
        # 价格/百分比/成本都是 Numeric(p, s)，精度变化也要生成迁移
        "compare_type": True,
        "compare_server_default": True,
        # 本地用 SQLite 试跑迁移时需要 batch 模式改表
        "render_as_batch": dialect_name == "sqlite",
    }


def run_migrations_offline() -> None:
    """只生成 SQL，不连库。"""
    url = config.get_main_option("sqlalchemy.url")
    dialect_name = url.split(":", 1)[0].split("+", 1)[0]
    context.configure(url=url, literal_binds=True, **_configure_kwargs(dialect_name))

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        logger.info("migrating %s", connection.engine.url.render_as_string(hide_password=True))
        context.configure(connection=connection, **_configure_kwargs(connection.dialect.name))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
