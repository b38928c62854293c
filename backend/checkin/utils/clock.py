from datetime import date, datetime, timedelta, timezone

from checkin.config import settings


def get_timezone() -> timezone:
    return timezone(timedelta(hours=settings.UTC_OFFSET_HOURS))


def get_now() -> datetime:
    """服务器当前时间（按配置的时区偏移），去掉 tzinfo 后入库"""
    return datetime.now(get_timezone()).replace(tzinfo=None)


def get_today() -> date:
    return datetime.now(get_timezone()).date()
