import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rhetor.api.api import router as api_router
from rhetor.config import get_log_level
from rhetor.errors import RhetorError
import rhetor.models  # noqa: F401  registers every table
from rhetor.models.database import Base, engine

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, content-type",
    "Access-Control-Allow-Methods": "GET, POST, PUT, OPTIONS",
}

app = FastAPI(title="Rhetor API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["authorization", "content-type"],
)
app.include_router(api_router, prefix="/api/v1", tags=["rhetor"])


@app.middleware("http")
async def answer_preflight(request: Request, call_next):
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=CORS_HEADERS)
    return await call_next(request)


@app.exception_handler(RhetorError)
async def handle_rhetor_error(request: Request, exc: RhetorError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.details or exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=CORS_HEADERS)


def _request_error_message(errors) -> str:
    first = errors[0] if errors else {}
    error_type = first.get("type")
    if error_type == "json_invalid":
        return "Invalid JSON body"
    if error_type == "value_error":
        return str(first.get("msg", "")).removeprefix("Value error, ")
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if not field:
        return "Invalid JSON body"
    return f"{field}: {first.get('msg', 'invalid')}"


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": _request_error_message(exc.errors())},
        headers=CORS_HEADERS,
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers={**CORS_HEADERS, **(exc.headers or {})},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"}, headers=CORS_HEADERS)


@app.on_event("startup")
def on_startup() -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except OperationalError:
        logger.warning(
            "Database connection failed during startup. "
            "Start Postgres or check .env settings."
        )
