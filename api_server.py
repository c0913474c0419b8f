from __future__ import annotations  # FastAPI server exposing the adaptive interview session API

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agents.oracle import bind_gateway_models
from api.routes import resume_router, router
from config.settings import settings
from storage.migrate import migrate


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    migrate(settings.DB_PATH)
    config_path = Path(settings.APP_CONFIG_PATH)
    if config_path.exists():
        bind_gateway_models(config_path)
    else:
        logger.warning("App config %s not found; oracle models must be bound manually", config_path)
    yield


app = FastAPI(title="Adaptive Interview API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)
app.include_router(resume_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in err["loc"][1:]) for err in exc.errors() if err.get("loc")})
    return JSONResponse(
        status_code=400,
        content={"detail": {"message": "Invalid request", "fields": fields, "retryable": False}},
    )


@app.get("/")
def root() -> dict:
    return {
        "message": "Server is running",
        "endpoints": {"interview": "/api/interview", "resumes": "/api/resumes"},
    }
