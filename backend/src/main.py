import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from causality.interfaces.routes import router as causality_router
from eventstore.interfaces.routes import router as eventstore_router
from eventstore.interfaces.ws_handler import router as ws_router
from notes.interfaces.routes import router as notes_router
from shared.config import settings
from shared.exceptions import (
    AppError,
    ConflictError,
    IntegrityMismatchError,
    InvalidCausalLinkError,
    NotFoundError,
    OrderingConflictError,
    ReplayGapError,
    SequenceSourceUnavailableError,
)
from shared.infrastructure.database import engine
from shared.infrastructure.redis import close_redis_pool

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await engine.dispose()
    await close_redis_pool()


app = FastAPI(
    title="Second Brain Event Store",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notes_router)
app.include_router(eventstore_router)
app.include_router(causality_router)
app.include_router(ws_router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictError)
async def conflict_handler(request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(IntegrityMismatchError)
async def integrity_handler(request, exc: IntegrityMismatchError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(ReplayGapError)
async def replay_gap_handler(request, exc: ReplayGapError):
    return JSONResponse(status_code=410, content={"detail": exc.message})


@app.exception_handler(InvalidCausalLinkError)
async def invalid_link_handler(request, exc: InvalidCausalLinkError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(SequenceSourceUnavailableError)
async def sequence_unavailable_handler(request, exc: SequenceSourceUnavailableError):
    return JSONResponse(status_code=503, content={"detail": exc.message})


@app.exception_handler(OrderingConflictError)
async def ordering_conflict_handler(request, exc: OrderingConflictError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(AppError)
async def app_error_handler(request, exc: AppError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.get("/health")
async def health_check():
    return {"status": "ok"}
