import logging
from functools import lru_cache

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from s3facade.api.v1.deps import get_template
from s3facade.api.v1.routers.objects import router as objects_router
from s3facade.common.config import Settings, get_settings
from s3facade.common.logging import setup_logging
from s3facade.common.result import ContractViolationError
from s3facade.infra.observability.metrics import metrics_app
from s3facade.infra.observability.middleware import MetricsMiddleware
from s3facade.services.template import S3Template, build_template

ERROR_CODE_BY_STATUS = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    429: "too_many_requests",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
}


def _normalize_detail(detail):
    if isinstance(detail, dict):
        maybe_code = detail.get("error_code")
        cleaned = {k: v for k, v in detail.items() if k != "error_code"}
        if len(cleaned) == 1 and "message" in cleaned:
            cleaned = cleaned["message"]
        if not cleaned:
            cleaned = None
        return cleaned, maybe_code if isinstance(maybe_code, str) else None
    return detail, None


def _resolve_error_code(status_code: int, override: str | None = None) -> str:
    if override:
        return override
    if status_code == 422:
        return "validation_error"
    return ERROR_CODE_BY_STATUS.get(status_code, "unknown_error")


def _describe_storage_target(settings: Settings) -> str:
    parts = [
        f"endpoint={settings.S3_ENDPOINT_URL or '<aws>'}",
        f"region={settings.S3_REGION or '<default>'}",
        f"bucket={settings.S3_BUCKET or '<none>'}",
        f"private={settings.S3_PRIVATE}",
    ]
    return ", ".join(parts)


def _problem(request: Request, status_code: int, title: str, detail, error_code: str):
    return JSONResponse(
        status_code=status_code,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": title,
            "status": status_code,
            "detail": detail,
            "error_code": error_code,
            "instance": str(request.url),
            "request_id": request.headers.get("X-Request-Id"),
        },
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    explicit_settings = settings is not None
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title="S3 Facade",
        version="v1",
        description="Configuration-driven facade over S3-compatible object storage",
    )

    app.include_router(objects_router, prefix="/api/v1", tags=["objects"])

    if explicit_settings:

        @lru_cache(maxsize=1)
        def configured_template() -> S3Template:
            return build_template(settings)

        app.dependency_overrides[get_template] = configured_template

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    def _template() -> S3Template:
        provider = app.dependency_overrides.get(get_template, get_template)
        return provider()

    @app.on_event("startup")
    def on_startup() -> None:
        startup_logger = logging.getLogger("s3facade.startup")
        target = _describe_storage_target(settings)
        startup_logger.info("初始化对象存储 [event=storage_init_started] (%s)", target)
        result = _template().initialize()
        if result.ok:
            startup_logger.info(
                "对象存储就绪 [event=storage_init_succeeded] (%s)", target
            )
        else:
            startup_logger.error(
                "对象存储初始化失败 [event=storage_init_failed] (%s) error=%s",
                target,
                result.error.message,
            )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger = logging.getLogger("http")
        normalized_detail, code_override = _normalize_detail(exc.detail)
        logger.log(
            logging.WARNING if exc.status_code < 500 else logging.ERROR,
            "http_exception status=%s detail=%s method=%s path=%s request_id=%s",
            exc.status_code,
            normalized_detail,
            request.method,
            request.url.path,
            request.headers.get("X-Request-Id"),
            extra={
                "extra": {
                    "status": exc.status_code,
                    "detail": normalized_detail,
                    "method": request.method,
                    "route": request.url.path,
                    "request_id": request.headers.get("X-Request-Id"),
                }
            },
        )
        return _problem(
            request,
            exc.status_code,
            "HTTP Error",
            normalized_detail,
            _resolve_error_code(exc.status_code, code_override),
        )

    @app.exception_handler(ContractViolationError)
    async def contract_violation_handler(request: Request, exc: ContractViolationError):
        return _problem(request, 409, "Conflict", str(exc), "contract_violation")

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        return _problem(
            request,
            422,
            "Validation Error",
            # 确保可序列化
            jsonable_encoder(exc.errors()),
            _resolve_error_code(422),
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/ready")
    def ready(template: S3Template = Depends(get_template)):
        bucket = template.default_bucket_name()
        if not bucket:
            return {"status": "ready", "detail": {"bucket": "<not configured>"}}
        if not template.bucket_exists(bucket):
            return {"status": "not_ready", "detail": {"bucket": f"{bucket} unreachable"}}
        return {"status": "ready"}

    return app


if __name__ == "__main__":
    uvicorn.run("s3facade.main:create_app", factory=True, host="0.0.0.0", port=8000)
