import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from config import Settings, get_settings
from whitelist.manager import add_ip, check_ip, list_ips, remove_ip
from whitelist.models import AddRequest, RemoveRequest, ResultKind, utc_now_iso
from whitelist.store import SheetsStore, get_store

SERVICE_NAME = "Whitelist API Server"
ENDPOINTS = [
    "GET  /api/whitelist/check/{address}",
    "GET  /api/whitelist/list",
    "POST /api/whitelist/add",
    "POST /api/whitelist/remove",
    "GET  /api/status",
]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and announce the endpoints."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"{SERVICE_NAME} online on port {settings.api_port}, sheet '{settings.sheet_name}'")
    for endpoint in ENDPOINTS:
        logger.info(f"  {endpoint}")
    yield


app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)


# ==== Error responses ====
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def _store_unavailable() -> JSONResponse:
    return _error(503, "Whitelist store unavailable")


def _save_failed() -> JSONResponse:
    return _error(500, "Could not save whitelist")


@app.middleware("http")
async def internal_error_guard(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"[API] Error handling {request.method} {request.url.path}")
        return _error(500, "Internal server error")


# Added last so it wraps the error guard and error responses keep CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"[API] Invalid request body for {request.url.path}: {exc.errors()}")
    fields = [str(err["loc"][1]) for err in exc.errors() if len(err["loc"]) > 1]
    if fields:
        return _error(400, f"Invalid request fields: {', '.join(dict.fromkeys(fields))}")
    return _error(400, "Invalid or missing request body")


# ==== Routes ====
@app.get("/", response_class=PlainTextResponse)
def root():
    return f"{SERVICE_NAME} is running. Use /api/status to check health."


@app.get("/api/status")
def status():
    return {
        "success": True,
        "status": "online",
        "service": SERVICE_NAME,
        "timestamp": utc_now_iso(),
    }


@app.get("/api/whitelist/check/{address}")
def check(address: str, store: SheetsStore = Depends(get_store),
          settings: Settings = Depends(get_settings)):
    result = check_ip(store, address, settings.check_log_path, settings.check_log_limit)
    if result.kind == ResultKind.STORE_UNAVAILABLE:
        return _store_unavailable()
    return {
        "success": True,
        "whitelisted": result.server is not None,
        "server": result.server.to_json() if result.server else None,
        "timestamp": utc_now_iso(),
    }


@app.get("/api/whitelist/list")
def list_servers(store: SheetsStore = Depends(get_store)):
    result = list_ips(store)
    if result.kind == ResultKind.STORE_UNAVAILABLE:
        return _store_unavailable()
    return {
        "success": True,
        "count": len(result.servers),
        "servers": [s.to_json() for s in result.servers],
        "timestamp": utc_now_iso(),
    }


@app.post("/api/whitelist/add")
def add(data: AddRequest, store: SheetsStore = Depends(get_store)):
    result = add_ip(store, data.address, data.owner, data.added_by)
    if result.kind == ResultKind.INVALID:
        return _error(400, f"Missing required fields: {', '.join(result.missing)}")
    if result.kind == ResultKind.CONFLICT:
        return {"success": False, "message": "Server already exists in whitelist"}
    if result.kind == ResultKind.STORE_UNAVAILABLE:
        return _store_unavailable()
    if result.kind == ResultKind.SAVE_FAILED:
        return _save_failed()
    return {"success": True, "message": "Server added to whitelist", "server": result.server.to_json()}


@app.post("/api/whitelist/remove")
def remove(data: RemoveRequest, store: SheetsStore = Depends(get_store)):
    result = remove_ip(store, data.address)
    if result.kind == ResultKind.INVALID:
        return _error(400, "Missing required field: address")
    if result.kind == ResultKind.NOT_FOUND:
        return {"success": False, "message": "Server not found in whitelist"}
    if result.kind == ResultKind.STORE_UNAVAILABLE:
        return _store_unavailable()
    if result.kind == ResultKind.SAVE_FAILED:
        return _save_failed()
    return {"success": True, "message": "Server removed from whitelist", "server": result.server.to_json()}


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
