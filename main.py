# main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
from starlette.middleware.cors import CORSMiddleware
import routes
from config.cache import close_redis, get_redis, redacted_url, redis_ready
from config.settings import settings
from util.constants import Headers
from util.enums import Color, Environment, ErrorMessage
from util.logger import init_logger

logger = logging.getLogger(__name__)


async def _real_ip(request: Request) -> str:
    if settings.TRUST_PROXY:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@asynccontextmanager
async def lifespan(fastApi: FastAPI):
    init_logger()
    print(f"{Color.GREEN}Initializing...{Color.RESET}")
    try:
        redis = await get_redis()
        await FastAPILimiter.init(redis, identifier=_real_ip)
    except Exception:
        logger.critical(
            "startup.redis.error url=%s", redacted_url(settings.REDIS_URL), exc_info=True
        )
        raise
    logger.info(
        "startup.ok env=%s import_dir=%s model=%s ai=%s",
        settings.APP_ENV,
        settings.PDF_IMPORT_DIR,
        settings.ANTHROPIC_MODEL,
        "on" if settings.ANTHROPIC_API_KEY else "fallback",
    )
    print(f"{Color.BLUE}Server Started{Color.RESET}")

    try:
        yield
    finally:
        try:
            await close_redis()
        except Exception:
            logger.warning("shutdown.redis.error", exc_info=True)
        print(f"{Color.RED}Server Shutdown{Color.RESET}")


app: FastAPI = FastAPI(title="Technical document part locator", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOWED_ORIGIN],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    # Browsers must be allowed to send the session headers cross-origin.
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        Headers.SESSION_ID,
        Headers.SESSION_ID_ALT,
    ],
)


@app.get("/healthz")
async def healthz():
    redis_ok = await redis_ready()
    return JSONResponse(
        status_code=200 if redis_ok else 503,
        content={"ok": redis_ok, "redis": redis_ok},
    )


@app.exception_handler(429)
async def ratelimit_handler(request: Request, exc):
    wait = settings.RATE_LIMIT_SECONDS
    return JSONResponse(
        status_code=429,
        content={
            "ok": False,
            "error": "rate_limited",
            "message": f"Too many requests. Try again in {wait}s.",
        },
        headers={"Retry-After": str(wait)},
    )


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    logger.error(
        "request.error method=%s path=%s", request.method, request.url.path, exc_info=exc
    )
    err = ErrorMessage.INTERNAL_ERROR.value
    return JSONResponse(status_code=err.http_status, content={"detail": err.message})


routes.register_routes(app)

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=reload)
