"""
表单存储 - 表单与字段的增删改查

短别名（short_id）用于分享链接，与表单主键分开；分配时有限次随机重试，
用尽仍冲突则直接报错，数据库上的唯一约束兜底。
"""
import logging
import re
import secrets
import string
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from checkin.config import settings
from checkin.exceptions import NotFoundError, StoreFailure
from checkin.models import Form, FormField
from checkin.schemas import FieldCreate, FormCreate, FormUpdate
from checkin.utils.clock import get_now

logger = logging.getLogger(__name__)

SHORT_ID_ALPHABET = string.ascii_lowercase + string.digits
UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value))


def generate_short_id(length: int = None) -> str:
    length = length or settings.SHORT_ID_LENGTH
    return "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(length))


async def allocate_short_id(db: AsyncSession) -> str:
    """生成一个未被占用的短别名"""
    for attempt in range(1, settings.SHORT_ID_MAX_ATTEMPTS + 1):
        candidate = generate_short_id()
        result = await db.execute(select(Form.id).where(Form.short_id == candidate))
        if result.scalar_one_or_none() is None:
            return candidate
        logger.warning("Short id %s already taken (attempt %d)", candidate, attempt)
    raise StoreFailure("Failed to allocate a short link")


def build_fields(fields: List[FieldCreate]) -> List[FormField]:
    """按提交顺序生成字段，field_order 即列表下标"""
    return [
        FormField(
            label=field.label,
            type=field.type,
            options=field.options or None,
            field_order=index,
            required=field.required,
        )
        for index, field in enumerate(fields)
    ]


async def list_forms(db: AsyncSession) -> List[Form]:
    result = await db.execute(select(Form).order_by(Form.created_at.desc()))
    return list(result.scalars().all())


async def find_form(db: AsyncSession, ref: str, with_fields: bool = False) -> Optional[Form]:
    """UUID 形式按主键查，否则按短别名查"""
    if is_uuid(ref):
        # 主键统一存小写
        query = select(Form).where(Form.id == ref.lower())
    else:
        query = select(Form).where(Form.short_id == ref)
    if with_fields:
        query = query.options(selectinload(Form.fields))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def resolve_form(db: AsyncSession, ref: str, with_fields: bool = False) -> Form:
    form = await find_form(db, ref, with_fields=with_fields)
    if not form:
        raise NotFoundError("Form not found")
    return form


async def get_form(db: AsyncSession, ref: str) -> Form:
    """获取表单及按顺序排列的字段"""
    return await resolve_form(db, ref, with_fields=True)


async def create_form(db: AsyncSession, data: FormCreate) -> Form:
    short_id = await allocate_short_id(db)
    form = Form(
        short_id=short_id,
        name=data.name,
        description=data.description,
        theme=data.theme,
        fields=build_fields(data.fields),
    )
    db.add(form)
    await db.commit()
    logger.info("Created form %s (%s) with %d field(s)", form.id, short_id, len(data.fields))
    return form


async def update_form(db: AsyncSession, ref: str, data: FormUpdate) -> Form:
    """
    更新表单信息；传了 fields 时整体替换字段列表。

    删除旧字段与插入新字段在同一个事务里提交，中途失败会整体回滚，
    不会出现字段被清空的中间状态。旧字段删除时，其历史填写值随外键级联删除。
    """
    form = await resolve_form(db, ref, with_fields=True)

    form.name = data.name
    form.updated_at = get_now()
    if "description" in data.model_fields_set:
        form.description = data.description
    if data.theme is not None:
        form.theme = data.theme

    if data.fields is not None:
        form.fields.clear()
        await db.flush()
        form.fields.extend(build_fields(data.fields))

    await db.commit()
    logger.info("Updated form %s", form.id)
    return form


async def delete_form(db: AsyncSession, ref: str) -> None:
    """删除表单，字段、成员、提交及填写值由外键级联删除"""
    form = await resolve_form(db, ref)
    await db.delete(form)
    await db.commit()
    logger.info("Deleted form %s", form.id)
