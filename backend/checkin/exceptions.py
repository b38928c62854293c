"""业务异常及其 HTTP 映射"""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CheckinError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CheckinError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationFailure(CheckinError):
    status_code = status.HTTP_400_BAD_REQUEST


class StoreFailure(CheckinError):
    """存储层出错；message 是返回给客户端的通用提示，原始错误只写日志"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def checkin_error_handler(request: Request, exc: CheckinError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        details.append({
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        })
    logger.info("Rejected request %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


async def raise_store_failure(db, message: str):
    """记录原始数据库错误并回滚，对外只返回通用提示；须在 except 块内调用"""
    logger.exception(message)
    await db.rollback()
    raise StoreFailure(message)
