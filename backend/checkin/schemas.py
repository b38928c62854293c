from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

FieldType = Literal["number", "text", "select", "steps", "checkbox", "image"]
Theme = Literal["default", "navy"]


# ========== 表单定义 ==========

class FieldCreate(BaseModel):
    label: str
    type: FieldType
    options: Optional[List[str]] = None  # select 的选项 / steps 的步骤名 / image 的图片地址
    required: bool = True


class FormCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    theme: Theme = "default"
    fields: List[FieldCreate] = []


class FormUpdate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    theme: Optional[Theme] = None
    fields: Optional[List[FieldCreate]] = None  # 不传则保留原有字段


class FieldResponse(BaseModel):
    id: str
    form_id: str
    label: str
    type: FieldType
    options: Optional[List[str]] = None
    field_order: int
    required: bool

    class Config:
        from_attributes = True


class FormResponse(BaseModel):
    id: str
    short_id: str
    name: str
    description: Optional[str] = None
    theme: Theme
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FormDetail(FormResponse):
    fields: List[FieldResponse] = []


class FormEntry(BaseModel):
    """填写页所需数据：表单定义 + 各字段初始值"""
    form: FormDetail
    initial_values: Dict[str, str] = Field(serialization_alias="initialValues")


# ========== 每日提交 ==========

class ResponseSubmit(BaseModel):
    form_id: str = Field(alias="formId")  # UUID 或短别名
    member_name: str = Field(alias="memberName")
    values: Dict[str, Any] = {}

    class Config:
        populate_by_name = True


class SubmitResult(BaseModel):
    success: bool = True
    response_id: str = Field(serialization_alias="responseId")
