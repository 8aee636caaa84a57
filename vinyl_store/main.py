from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .cache import check_redis_connection, create_redis, parse_redis_url
from .database import init_db
from .errors import StoreError
from .logger import logger
from .routers import auth, cart, checkout, mail, orders, users, vinyls


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    settings = parse_redis_url(config.REDIS_URL, config.REDIS_TLS)
    app.state.redis = create_redis(settings)
    await check_redis_connection(app.state.redis, settings)
    yield
    await app.state.redis.aclose()


app = FastAPI(title="V-Disk Storefront", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    allow_credentials="*" not in config.CORS_ORIGINS,
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


for module in (auth, users, vinyls, cart, checkout, orders, mail):
    app.include_router(module.router)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "vinyl-store"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
