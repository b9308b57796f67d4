import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
from core.config import settings
from core.database import Base, engine
from routers import auth_router, health_router, verification_router
import models  # noqa: F401 - register models

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Alembic owns real deployments; this keeps a fresh SQLite dev database usable.
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Community Hub API", lifespan=lifespan)

# Respect X-Forwarded-Proto/Host when behind a proxy; verification links are built from the host
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router.router)
app.include_router(auth_router.router)
app.include_router(verification_router.router)


@app.get("/")
def root():
    return {"message": "Community Hub API Ready"}
