from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from monadssenger import __version__, api
from monadssenger.api import include_routers
from monadssenger.core.config import settings
from monadssenger.core.logging import setup_logging
from monadssenger.database import init_store, close_store
from monadssenger.middleware.error_handler import (
    ErrorHandlerMiddleware,
    create_http_exception_handler,
    request_validation_exception_handler
)
from monadssenger.middleware.logging_middleware import LoggingMiddleware
from monadssenger.middleware.rate_limiting import MessageRateLimitMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    await init_store()
    yield
    # Shutdown
    await close_store()


app = FastAPI(title="Monadssenger", version=__version__, lifespan=lifespan)

# 미들웨어는 나중에 추가한 것이 바깥쪽에서 실행됨
app.add_middleware(MessageRateLimitMiddleware)
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, create_http_exception_handler())
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Include routers
include_routers(app, "api", api.__path__)


@app.get("/")
async def root():
    return {"message": "Monadssenger is running", "version": __version__}
