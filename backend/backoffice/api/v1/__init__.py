from fastapi import APIRouter, Depends
from backoffice.services.auth_service import get_current_user


# 非受保护路由
from .routes_health import router as health_router


# 需要登录的受保护路由（pricing 自身再加 require_admin）
from .pricing import router as pricing_router


api_v1 = APIRouter()
api_v1.include_router(health_router)      # /health 不需要登录

# --- 需要登录的接口 ---
protected = APIRouter(dependencies=[Depends(get_current_user)])

protected.include_router(pricing_router)

# 把受保护路由注册进主路由
api_v1.include_router(protected)
