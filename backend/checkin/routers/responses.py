"""每日提交路由"""
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from checkin.config import settings
from checkin.database import get_db
from checkin.exceptions import raise_store_failure
from checkin.schemas import ResponseSubmit, SubmitResult
from checkin.services.submissions import submit_response

router = APIRouter(prefix=f"{settings.API_PREFIX}/responses", tags=["responses"])


@router.post("", response_model=SubmitResult)
async def submit(data: ResponseSubmit, db: AsyncSession = Depends(get_db)):
    """提交今日数据；同一成员当天重复提交会覆盖之前的内容"""
    try:
        response_id = await submit_response(db, data.form_id, data.member_name, data.values)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to submit response")
    return SubmitResult(response_id=response_id)
