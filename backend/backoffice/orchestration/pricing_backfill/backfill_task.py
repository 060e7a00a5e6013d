from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from celery import shared_task
from sqlalchemy.orm import Session

from backoffice.db.session import SessionLocal, transaction
from backoffice.services.pricing.backfill import run_backfill


logger = logging.getLogger(__name__)



"""
入口：运维手动触发（或 API 异步触发）
    1) 新开一个 Session
    2) run_backfill(...) 在一个事务里跑完所有商品
    3) 成功 commit 并返回报告；失败回滚，返回带 error 的结果（不抛给 worker，避免 acks_late 反复重投）
"""
@shared_task(name="backoffice.orchestration.pricing_backfill.backfill_task.kick_pricing_backfill")
def kick_pricing_backfill(mode: Optional[str] = None) -> Dict[str, Any]:

    db: Session = SessionLocal()
    try:
        with transaction(db):
            report = run_backfill(db, mode=mode)

        result = report.to_dict()
        logger.info("pricing_backfill done updated=%d skipped=%d", report.updated, len(report.skipped))
        return result

    except Exception as e:
        logger.exception("pricing_backfill failed mode=%s", mode)
        return {"updated": 0, "skipped": [], "sources": {}, "error": str(e)}
    finally:
        db.close()
