"""结果汇总 - 按日期分组的提交列表及数字字段合计"""
import re
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from checkin.models import FormField, Response
from checkin.services.forms import resolve_form

UNKNOWN_MEMBER = "Unknown"

# 取字符串开头的数字部分，"12abc" 记 12，解析不出记 0
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value: Optional[str]) -> float:
    if not value:
        return 0.0
    match = _LEADING_NUMBER.match(value)
    if not match:
        return 0.0
    return float(match.group(0))


def format_number(value: float):
    """整数值去掉小数点"""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def serialize_field(field: FormField) -> dict:
    return {
        "id": field.id,
        "label": field.label,
        "type": field.type,
        "options": field.options,
    }


def serialize_response(response: Response) -> dict:
    return {
        "id": response.id,
        "date": response.date.isoformat(),
        "createdAt": response.created_at.isoformat(),
        "memberName": response.member.name if response.member else UNKNOWN_MEMBER,
        "values": {v.field_id: v.value for v in response.values},
    }


def group_by_date(responses: List[dict]) -> Dict[str, List[dict]]:
    """按提交记录里存的日期分组，保持原有顺序"""
    grouped: Dict[str, List[dict]] = {}
    for response in responses:
        grouped.setdefault(response["date"], []).append(response)
    return grouped


def sum_numeric_fields(fields: List[dict], responses: List[dict]) -> Dict[str, float]:
    """只对 number 字段求和"""
    totals = {}
    for field in fields:
        if field["type"] != "number":
            continue
        total = sum(parse_number(r["values"].get(field["id"])) for r in responses)
        totals[field["id"]] = format_number(total)
    return totals


def compute_stats(grouped: Dict[str, List[dict]], responses: List[dict]) -> dict:
    days = len(grouped)
    return {
        "recordedDays": days,
        "totalResponses": len(responses),
        "memberCount": len({r["memberName"] for r in responses}),
        "averagePerDay": round(len(responses) / days, 1) if days else 0,
    }


def pick_default_date(dates: List[str], today: date) -> Optional[str]:
    """默认显示今天，今天没有数据则取最近一天"""
    if not dates:
        return None
    if today.isoformat() in dates:
        return today.isoformat()
    return max(dates)


async def get_results(db: AsyncSession, form_ref: str, day: Optional[date] = None) -> dict:
    form = await resolve_form(db, form_ref, with_fields=True)

    query = (
        select(Response)
        .options(selectinload(Response.member), selectinload(Response.values))
        .where(Response.form_id == form.id)
        .order_by(Response.date.desc(), Response.created_at.desc())
    )
    if day is not None:
        query = query.where(Response.date == day)
    result = await db.execute(query)

    fields = [serialize_field(f) for f in sorted(form.fields, key=lambda f: f.field_order)]
    responses = [serialize_response(r) for r in result.scalars().all()]
    grouped = group_by_date(responses)

    return {
        "form": {"id": form.id, "name": form.name},
        "fields": fields,
        "responses": responses,
        "groupedByDate": grouped,
        "totals": {d: sum_numeric_fields(fields, rs) for d, rs in grouped.items()},
        "stats": compute_stats(grouped, responses),
    }
