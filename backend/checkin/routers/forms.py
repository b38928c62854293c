"""表单管理及结果查看路由"""
from datetime import date
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from checkin.config import settings
from checkin.database import get_db
from checkin.exceptions import raise_store_failure
from checkin.schemas import FormCreate, FormDetail, FormEntry, FormResponse, FormUpdate
from checkin.services import forms as form_service
from checkin.services import presenter
from checkin.services.exporter import export_results_docx
from checkin.services.results import get_results, pick_default_date
from checkin.utils.clock import get_today

router = APIRouter(prefix=f"{settings.API_PREFIX}/forms", tags=["forms"])


@router.get("", response_model=List[FormResponse])
async def list_forms(db: AsyncSession = Depends(get_db)):
    """获取表单列表（按创建时间倒序）"""
    try:
        return await form_service.list_forms(db)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to fetch forms")


@router.post("", response_model=FormDetail, status_code=201)
async def create_form(data: FormCreate, db: AsyncSession = Depends(get_db)):
    """创建表单"""
    try:
        return await form_service.create_form(db, data)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to create form")


@router.get("/{form_ref}", response_model=FormDetail)
async def get_form(form_ref: str, db: AsyncSession = Depends(get_db)):
    """按 ID 或短别名获取表单及字段"""
    try:
        return await form_service.get_form(db, form_ref)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to fetch form")


@router.put("/{form_id}", response_model=FormDetail)
async def update_form(form_id: str, data: FormUpdate, db: AsyncSession = Depends(get_db)):
    """更新表单，传 fields 时整体替换字段"""
    try:
        return await form_service.update_form(db, form_id, data)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to update form")


@router.delete("/{form_id}")
async def delete_form(form_id: str, db: AsyncSession = Depends(get_db)):
    """删除表单（级联删除全部数据）"""
    try:
        await form_service.delete_form(db, form_id)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to delete form")
    return {"success": True}


@router.get("/{form_ref}/entry", response_model=FormEntry)
async def get_entry(form_ref: str, db: AsyncSession = Depends(get_db)):
    """填写页数据：表单定义及各字段初始值"""
    try:
        form = await form_service.get_form(db, form_ref)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to fetch form")
    detail = FormDetail.model_validate(form)
    fields = [f.model_dump() for f in detail.fields]
    return FormEntry(form=detail, initial_values=presenter.initial_values(fields))


@router.get("/{form_id}/responses")
async def list_responses(form_id: str, day: Optional[date] = Query(None, alias="date"), db: AsyncSession = Depends(get_db)):
    """获取提交结果，按日期分组；可用 date 过滤某一天"""
    try:
        return await get_results(db, form_id, day)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to fetch responses")


async def _load_table(db: AsyncSession, form_id: str, day: Optional[date]):
    try:
        results = await get_results(db, form_id, day)
    except SQLAlchemyError:
        await raise_store_failure(db, "Failed to fetch responses")

    selected = day.isoformat() if day else pick_default_date(list(results["groupedByDate"]), get_today())
    responses = results["groupedByDate"].get(selected, []) if selected else []
    table = presenter.build_results_table(results["fields"], responses)
    return results, selected, table


@router.get("/{form_id}/results/table")
async def get_results_table(form_id: str, day: Optional[date] = Query(None, alias="date"), db: AsyncSession = Depends(get_db)):
    """某一天的结果表格与纯文本汇总；不传 date 时默认今天或最近一天。

    传了 date 时只查询当天数据，此时 dates 与 stats 也只反映这一天。
    """
    results, selected, table = await _load_table(db, form_id, day)
    summary_text = ""
    if selected:
        summary_text = presenter.render_summary_text(
            results["form"]["name"], date.fromisoformat(selected), table
        )
    return {
        "form": results["form"],
        "date": selected,
        "dates": list(results["groupedByDate"]),
        "table": table,
        "summaryText": summary_text,
        "stats": results["stats"],
    }


@router.get("/{form_id}/results/export")
async def export_results(form_id: str, day: Optional[date] = Query(None, alias="date"), db: AsyncSession = Depends(get_db)):
    """导出某一天的结果为 Word 文档"""
    results, selected, table = await _load_table(db, form_id, day)
    day = date.fromisoformat(selected) if selected else get_today()
    doc_bytes = export_results_docx(results["form"]["name"], day, table)

    filename = f"{results['form']['name']}_{day.isoformat()}.docx"
    encoded_filename = quote(filename)
    return Response(
        content=doc_bytes,
        media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{encoded_filename}"},
    )
