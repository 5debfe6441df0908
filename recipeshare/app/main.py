# recipeshare/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError

from recipeshare.app.config import settings
from recipeshare.app.domain.errors import RepositoryError
from recipeshare.app.routers.auth import router as auth_router
from recipeshare.app.routers.browse import categories_router, profiles_router
from recipeshare.app.routers.collections import router as collections_router
from recipeshare.app.routers.recipes import router as recipes_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

app = FastAPI(title="RecipeShare API", version="0.1.0")
log = logging.getLogger("app")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(recipes_router)
app.include_router(collections_router)
app.include_router(categories_router)
app.include_router(profiles_router)


@app.exception_handler(APIError)
async def store_error(request: Request, exc: APIError) -> JSONResponse:
    log.error("store.error path=%s code=%s message=%s", request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=502, content={"detail": "Upstream store error"})


@app.exception_handler(RepositoryError)
async def repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
    log.error("repository.error path=%s operation=%s reason=%s", request.url.path, exc.operation, exc.reason)
    return JSONResponse(status_code=502, content={"detail": "Upstream store error"})


@app.get("/health")
def health():
    return {"ok": True, "env": settings.APP_ENV}
