import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.router import router as v1_router
from app.core.clients import close_clients
from app.core.telemetry import setup_telemetry
from app.schemas.common import ErrorResponse
from app.services.errors import AdminError

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_clients()


app = FastAPI(title="Tour Admin API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(AdminError)
async def admin_error_handler(request: Request, exc: AdminError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__)
    body = ErrorResponse(code=exc.code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


setup_telemetry(app)
app.include_router(v1_router)
