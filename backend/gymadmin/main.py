from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from gymadmin.core.config import settings
from gymadmin.core.logging import setup_logging, get_logger
from gymadmin.core.security_headers import SecurityHeadersMiddleware
from gymadmin.core.rate_limit import limiter, rate_limit_exceeded_handler
from gymadmin.routers import health
from gymadmin.routers import admin_plans, admin_subscriptions, admin_payments, admin_users, admin_logs
from gymadmin.schemas.common import error_body
from gymadmin.services.errors import LifecycleError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションライフサイクル管理"""
    setup_logging(debug=settings.DEBUG, env=settings.ENV)
    logger.info("アプリケーション起動")
    yield
    logger.info("アプリケーション終了")


app = FastAPI(
    title=settings.SITE_NAME,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# レート制限設定
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# --- バリデーションエラー日本語化 ---
_FIELD_JA = {
    "userId": "会員ID",
    "planId": "プランID",
    "amountPaid": "支払金額",
    "paymentMethod": "支払方法",
    "autoRenew": "自動更新",
    "reason": "解約理由",
    "days": "延長日数",
    "notes": "備考",
    "name": "プラン名",
    "userCategory": "会員区分",
    "durationType": "期間種別",
    "priceAmount": "価格",
    "durationDays": "有効日数",
    "description": "説明",
    "isActive": "販売状態",
    "page": "ページ",
    "limit": "件数",
    "status": "ステータス",
    "startDate": "開始日",
    "endDate": "終了日",
}


def _translate_error(err: dict) -> str:
    t = err.get("type", "")
    ctx = err.get("ctx", {})
    loc = err.get("loc", [])
    field = str(loc[-1]) if loc else ""
    fj = _FIELD_JA.get(field, field)

    if t == "missing":
        return f"{fj}は必須です"
    if t == "string_too_short":
        return f"{fj}は{ctx.get('min_length', '')}文字以上で入力してください"
    if t == "string_too_long":
        return f"{fj}は{ctx.get('max_length', '')}文字以下で入力してください"
    if t in ("int_parsing", "int_type", "decimal_parsing", "decimal_type"):
        return f"{fj}は数値で入力してください"
    if t == "greater_than":
        return f"{fj}は{ctx.get('gt', '')}より大きい値を入力してください"
    if t == "greater_than_equal":
        return f"{fj}は{ctx.get('ge', '')}以上の値を入力してください"
    if t == "less_than_equal":
        return f"{fj}は{ctx.get('le', '')}以下の値を入力してください"
    if t == "decimal_max_places":
        return f"{fj}は小数点以下{ctx.get('decimal_places', '')}桁までで入力してください"
    if t == "literal_error":
        return f"{fj}は{ctx.get('expected', '')}のいずれかを指定してください"
    if t == "string_type":
        return f"{fj}は文字列で入力してください"
    if t == "bool_parsing":
        return f"{fj}は真偽値で入力してください"
    if t == "date_from_datetime_parsing" or t == "date_parsing":
        return f"{fj}はYYYY-MM-DD形式で入力してください"
    return f"{fj}: 入力値が不正です"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [_translate_error(e) for e in exc.errors()]
    return JSONResponse(status_code=422, content=error_body("、".join(messages)))


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    logger.warning(f"操作拒否: {request.method} {request.url.path} {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "リクエストを処理できません"
    return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)


@app.exception_handler(SQLAlchemyError)
async def db_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"DBエラー: {request.method} {request.url.path} {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=error_body("サーバーエラーが発生しました"))


# ミドルウェア (登録順序: 後に登録したものが先に実行される)
# セキュリティヘッダー（最初に実行されるよう最後に登録）
app.add_middleware(SecurityHeadersMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ルーター登録
app.include_router(health.router)
app.include_router(admin_plans.router)
app.include_router(admin_subscriptions.router)
app.include_router(admin_payments.router)
app.include_router(admin_users.router)
app.include_router(admin_logs.router)
