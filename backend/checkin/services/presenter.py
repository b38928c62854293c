"""
展示层 - 填写页初始值、结果表格与汇总文本

所有函数都只处理字段字典（id / label / type / options）和汇总结果里的提交字典，
不访问数据库。
"""
import json
from datetime import date
from typing import Dict, List, Optional

from checkin.services.results import format_number, sum_numeric_fields

EMPTY = "-"
CHECKED = "✓"
NAME_HEADER = "Name"
TOTAL_LABEL = "Total"
WEEKDAY_MAP = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def _steps(field: dict) -> List[str]:
    return field.get("options") or []


def format_value(field: dict, value: Optional[str]) -> str:
    """
    单元格显示值。

    steps 字段按配置的步骤顺序输出次数；存的内容不是 JSON 对象（解析失败，
    或解析出列表、数字等）时原样显示，便于发现脏数据。
    """
    if not value:
        return EMPTY

    if field["type"] == "checkbox":
        return CHECKED if value == "true" else EMPTY

    if field["type"] == "steps":
        try:
            step_values = json.loads(value)
        except json.JSONDecodeError:
            return value
        if not isinstance(step_values, dict):
            return value
        # 按配置的步骤顺序输出次数，如 1-1-0-0
        counts = []
        for step in _steps(field):
            count = step_values.get(step)
            counts.append(str(format_number(count if count is not None else 0)))
        return "-".join(counts)

    return value


def format_field_header(field: dict) -> str:
    """steps 字段在标题后附上步骤顺序，如 Outreach (Try-Share-Accept)"""
    steps = _steps(field)
    if field["type"] == "steps" and steps:
        return f"{field['label']} ({'-'.join(steps)})"
    return field["label"]


def display_fields(fields: List[dict]) -> List[dict]:
    """image 字段只在填写页展示，不进结果表"""
    return [f for f in fields if f["type"] != "image"]


def initial_values(fields: List[dict]) -> Dict[str, str]:
    """填写页各字段的默认值"""
    values = {}
    for field in fields:
        if field["type"] == "number":
            values[field["id"]] = "0"
        elif field["type"] == "steps":
            values[field["id"]] = json.dumps({step: 0 for step in _steps(field)}, ensure_ascii=False, separators=(",", ":"))
        elif field["type"] == "checkbox":
            values[field["id"]] = "false"
        else:
            values[field["id"]] = ""
    return values


def is_field_completed(field: dict, value: Optional[str]) -> bool:
    if not value:
        return False
    field_type = field["type"]
    if field_type == "number":
        return value != "0"
    if field_type == "text":
        return value.strip() != ""
    if field_type == "select":
        return True
    if field_type == "checkbox":
        return value == "true"
    if field_type == "steps":
        try:
            step_values = json.loads(value)
        except json.JSONDecodeError:
            return False
        return isinstance(step_values, dict) and any(
            isinstance(v, (int, float)) and v > 0 for v in step_values.values()
        )
    return False


def progress(fields: List[dict], member_name: str, values: Dict[str, str]) -> dict:
    """填写进度，姓名也算一项"""
    editable = display_fields(fields)
    completed = sum(1 for f in editable if is_field_completed(f, values.get(f["id"])))
    if member_name and member_name.strip():
        completed += 1
    return {"completed": completed, "total": len(editable) + 1}


def build_results_table(fields: List[dict], responses: List[dict]) -> dict:
    """
    生成某一天的结果表格。

    返回 header（表头）、rows（每条提交一行，首列姓名）以及 total（存在
    number 字段时的合计行，否则为 None）。
    """
    shown = display_fields(fields)
    header = [NAME_HEADER] + [format_field_header(f) for f in shown]
    rows = [
        [r["memberName"]] + [format_value(f, r["values"].get(f["id"])) for f in shown]
        for r in responses
    ]

    total = None
    if any(f["type"] == "number" for f in shown):
        sums = sum_numeric_fields(shown, responses)
        total = [TOTAL_LABEL] + [
            str(format_number(sums[f["id"]])) if f["type"] == "number" else EMPTY
            for f in shown
        ]

    return {"header": header, "rows": rows, "total": total}


def format_date_display(day: date) -> str:
    return f"{day.isoformat()} {WEEKDAY_MAP[day.weekday()]}"


def render_summary_text(form_name: str, day: date, table: dict) -> str:
    """生成可直接转发的纯文本汇总"""
    if not table["rows"]:
        return ""
    lines = [
        f"{form_name} ({format_date_display(day)}) · {len(table['rows'])} responded",
        " | ".join(table["header"]),
    ]
    for i, row in enumerate(table["rows"]):
        lines.append(f"{i + 1}. " + " | ".join(row))
    if table["total"]:
        lines.append(" | ".join(table["total"]))
    return "\n".join(lines)
