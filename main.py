import logging

from dotenv import load_dotenv

# Load .env BEFORE importing modules that use environment variables
load_dotenv()

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.requests import Request

from repair_analyzer import __version__
from repair_analyzer.config import get_settings
from repair_analyzer.errors import AuthError, RepairAssistantError

# 수리 진단 라우터 import
from repair_analyzer.api.router import router as repair_router

settings = get_settings()

logger = logging.getLogger("uvicorn.error")
logger.info(f"[CORS] ALLOWED_ORIGINS loaded: {settings.allowed_origins}")

app = FastAPI(title="Repair Assistant API", version=__version__)

# 수리 진단 API 라우터 등록
app.include_router(repair_router)

# CORS 설정 (preflight 는 permissive)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=settings.allowed_origins != ["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


@app.exception_handler(AuthError)
async def auth_exception_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RepairAssistantError)
async def repair_exception_handler(request: Request, exc: RepairAssistantError):
    if exc.status_code >= 500:
        logger.error(f"[{exc.error_code}] {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": _validation_message(exc)},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


@app.get("/health")
async def health():
    return {"status": "ok", "data": {"service": "alive", "version": __version__}}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=7000)
