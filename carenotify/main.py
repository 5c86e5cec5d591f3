from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from carenotify.api.v1.api import api_router
from carenotify.api.v1.endpoints import ws
from carenotify.core.config import settings
from carenotify.core.connection_registry import ConnectionRegistry
from carenotify.core.exceptions import NotFoundError, PersistenceError
from carenotify.services.scheduler import start_scheduler, shutdown_scheduler
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.connection_registry = ConnectionRegistry()
    start_scheduler(app.state.connection_registry)
    yield
    shutdown_scheduler()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan
)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"❌ Persistence failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})

app.include_router(api_router, prefix=settings.API_V1_STR)
app.include_router(ws.router)

@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}", "status": "ok"}
