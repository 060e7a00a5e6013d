# Celery 应用：后台/运维类定价任务

from celery import Celery
from kombu import Exchange, Queue
from backoffice.core.config import settings
from backoffice.core.logging import configure_logging

configure_logging()


'''
初始化 Celery 应用/实例
   - 批量回填等长任务放到 worker 执行，避免占住 HTTP 请求
'''
celery_app = Celery(
    "inventory_backoffice",
    broker=settings.CELERY_BROKER_URL,          # 队列位置 (Redis)
    backend=settings.CELERY_RESULT_BACKEND,     # 结果存储 (Redis)
    include=[
        "backoffice.orchestration.pricing_backfill.backfill_task",   # 成本/价格回填
    ],
)


'''
  通用 Celery 配置
'''
celery_app.conf.update(
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,                             # 内部还是存 UTC
    task_serializer="json",                      # 序列化格式 JSON
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,                     # 任务启动时标记 started
    broker_connection_retry_on_startup=True,     # 启动时如果 broker 挂了会重试
    worker_prefetch_multiplier=1,                # 一个 worker 一次只取一个任务
    task_acks_late=True,                         # 任务执行完再确认，异常可重投
    broker_heartbeat=30,
    broker_pool_limit=10,
)


celery_app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("orchestrator", Exchange("orchestrator"), routing_key="orchestrator"),
)


celery_app.conf.task_routes = {
    "backoffice.orchestration.pricing_backfill.backfill_task.kick_pricing_backfill": {"queue": "orchestrator"},
}
