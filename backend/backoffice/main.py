import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from backoffice.core.config import settings
from backoffice.core.errors import ConflictError, NotFoundError, PricingValidationError
from backoffice.core.logging import configure_logging
from backoffice.api.v1 import api_v1
from backoffice.db.session import dispose_engine

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

# 从环境读取前端白名单（逗号分隔）。本地可配：
# BACKEND_CORS_ORIGINS=http://localhost:3000,https://admin.local.test:3000
origins = [o.strip() for o in settings.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,     # 明确白名单（本地 http://localhost:3000，线上是后台前端域名）
    allow_credentials=True,    # Access-Control-Allow-Credentials: true
    allow_methods=["GET","POST","PUT","PATCH","DELETE","OPTIONS"],
    allow_headers=["*"],
    )


# Origin 校验（仅对改数据方法）
TRUSTED = set(origins)

@app.middleware("http")
async def origin_check(request: Request, call_next):
    if request.method in {"POST", "PUT", "PATCH", "DELETE"}:
        origin = request.headers.get("origin")
        # 没有 Origin（如 curl/脚本）则放行；有 Origin 但不在白名单里才拒绝
        if origin and origin not in TRUSTED:
            return JSONResponse(status_code=403, content={"detail": "Bad Origin"})

    return await call_next(request)



# ---------- 异常 → HTTP 状态码 ----------
@app.exception_handler(PricingValidationError)
async def _validation_error(request: Request, exc: PricingValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def _conflict(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    # transaction() 已经回滚；这里只记录并隐藏细节
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "internal error"})


app.include_router(api_v1, prefix=settings.API_PREFIX)


@app.on_event("shutdown")
def _shutdown() -> None:
    dispose_engine()


# 根路径健康探活（方便测试或 Docker 健康检查）
@app.get("/")
def root():
    return {
        "app": settings.PROJECT_NAME,
        "env": settings.ENVIRONMENT,
        "ok": True
    }
