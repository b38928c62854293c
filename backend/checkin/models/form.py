"""表单与字段模型"""
import uuid

from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from checkin.database import Base
from checkin.utils.clock import get_now


def new_uuid() -> str:
    return str(uuid.uuid4())


class Form(Base):
    __tablename__ = "forms"

    id = Column(String(36), primary_key=True, default=new_uuid)
    short_id = Column(String(16), unique=True, nullable=False, index=True)  # 分享链接用的短别名
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    theme = Column(String(20), nullable=False, default="default")
    created_at = Column(DateTime, default=get_now, nullable=False)
    updated_at = Column(DateTime, default=get_now, onupdate=get_now, nullable=False)

    fields = relationship(
        "FormField",
        back_populates="form",
        order_by="FormField.field_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    members = relationship("Member", back_populates="form", cascade="all, delete-orphan", passive_deletes=True)
    responses = relationship("Response", back_populates="form", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Form(id={self.id}, short_id={self.short_id})>"


class FormField(Base):
    __tablename__ = "form_fields"

    id = Column(String(36), primary_key=True, default=new_uuid)
    form_id = Column(String(36), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False)  # number | text | select | steps | checkbox | image
    options = Column(JSON, nullable=True)  # 选项 / 步骤名列表；image 类型为 [图片地址]
    field_order = Column(Integer, nullable=False, default=0)
    required = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=get_now, nullable=False)

    form = relationship("Form", back_populates="fields")

    def __repr__(self):
        return f"<FormField(id={self.id}, type={self.type}, order={self.field_order})>"
