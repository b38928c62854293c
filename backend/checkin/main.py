import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from checkin.config import settings
from checkin.database import init_db
from checkin.exceptions import CheckinError, checkin_error_handler, validation_exception_handler
from checkin.logging_config import setup_logging
from checkin.routers import forms_router, responses_router, cron_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 启动时初始化数据库
    if settings.DATABASE_URL.startswith("sqlite"):
        os.makedirs("./data", exist_ok=True)
    await init_db()
    logger.info("Daily check-in API started (%s)", settings.ENVIRONMENT)
    yield


app = FastAPI(
    title="Daily Check-in",
    description="Daily check-in form builder: forms, one submission per member per day, grouped results",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CheckinError, checkin_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# 注册路由
app.include_router(forms_router)
app.include_router(responses_router)
app.include_router(cron_router)


@app.get("/")
async def root():
    return {"message": "Daily Check-in API", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
