"""
每日提交处理

同一成员同一天只保留一条提交：成员与当日提交都按自然键
（form_id, name）/（form_id, member_id, date）做“插入或忽略”，再查出现有行，
重复提交时整体替换填写值。整个过程一次提交，出错整体回滚。
"""
import json
import logging
from datetime import date
from typing import Any, Dict, List, Tuple

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from checkin.exceptions import ValidationFailure
from checkin.models import Form, Member, Response, ResponseValue
from checkin.services.forms import resolve_form
from checkin.utils.clock import get_now, get_today

logger = logging.getLogger(__name__)

_INSERT_IGNORE_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def encode_value(value: Any) -> str:
    """把客户端提交的原始值转成入库字符串"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        # steps 字段：{"步骤名": 次数}
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def prepare_values(form: Form, values: Dict[str, Any]) -> Dict[str, str]:
    """
    过滤并编码填写值，同时检查必填字段。

    不属于该表单的字段直接丢弃；image 字段只用于展示，不接收填写值。
    """
    fields_by_id = {field.id: field for field in form.fields}
    encoded = {}
    for field_id, raw in values.items():
        field = fields_by_id.get(field_id)
        if field is None:
            logger.warning("Dropping value for unknown field %s on form %s", field_id, form.id)
            continue
        if field.type == "image":
            continue
        encoded[field_id] = encode_value(raw)

    for field in form.fields:
        if field.type == "image" or not field.required:
            continue
        if not encoded.get(field.id, "").strip():
            raise ValidationFailure(f"{field.label} is required")
    return encoded


async def _insert_ignore(db: AsyncSession, model, conflict_columns: List[str], **values) -> bool:
    """按唯一键插入，已存在则不动；返回是否真的插入了新行"""
    dialect = db.get_bind().dialect.name
    insert = _INSERT_IGNORE_DIALECTS.get(dialect)
    if insert is not None:
        stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
        result = await db.execute(stmt)
        return result.rowcount == 1

    try:
        async with db.begin_nested():
            db.add(model(**values))
        return True
    except IntegrityError:
        return False


async def get_or_create_member(db: AsyncSession, form_id: str, name: str) -> Member:
    """按姓名精确匹配成员，不存在则创建"""
    created = await _insert_ignore(db, Member, ["form_id", "name"], form_id=form_id, name=name)
    result = await db.execute(select(Member).where(Member.form_id == form_id, Member.name == name))
    member = result.scalar_one()
    if created:
        logger.info("New member %r joined form %s", name, form_id)
    return member


async def get_or_create_response(db: AsyncSession, form_id: str, member_id: str, day: date) -> Tuple[Response, bool]:
    created = await _insert_ignore(
        db, Response, ["form_id", "member_id", "date"],
        form_id=form_id, member_id=member_id, date=day,
    )
    result = await db.execute(
        select(Response).where(
            Response.form_id == form_id,
            Response.member_id == member_id,
            Response.date == day,
        )
    )
    return result.scalar_one(), created


async def submit_response(db: AsyncSession, form_ref: str, member_name: str, values: Dict[str, Any]) -> str:
    """提交今日数据，返回提交记录 ID"""
    form = await resolve_form(db, form_ref, with_fields=True)

    if not member_name or not member_name.strip():
        raise ValidationFailure("Member name is required")
    encoded = prepare_values(form, values)

    member = await get_or_create_member(db, form.id, member_name)
    today = get_today()
    response, created = await get_or_create_response(db, form.id, member.id, today)

    if not created:
        # 今日已提交过：清空旧值后整体重写
        await db.execute(delete(ResponseValue).where(ResponseValue.response_id == response.id))
        response.updated_at = get_now()

    db.add_all([
        ResponseValue(response_id=response.id, field_id=field_id, value=value)
        for field_id, value in encoded.items()
    ])
    await db.commit()

    logger.info(
        "%s response %s for %r on %s (%d value(s))",
        "Created" if created else "Replaced", response.id, member_name, today.isoformat(), len(encoded),
    )
    return response.id
