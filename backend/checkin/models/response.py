"""成员与每日提交模型"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from checkin.database import Base
from checkin.models.form import new_uuid
from checkin.utils.clock import get_now


class Member(Base):
    """表单内的参与者，按姓名精确匹配"""
    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("form_id", "name", name="uq_members_form_name"),)

    id = Column(String(36), primary_key=True, default=new_uuid)
    form_id = Column(String(36), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=get_now, nullable=False)

    form = relationship("Form", back_populates="members")
    responses = relationship("Response", back_populates="member", cascade="all, delete-orphan", passive_deletes=True)


class Response(Base):
    """某成员某一天的提交，每人每天最多一条"""
    __tablename__ = "responses"
    __table_args__ = (
        UniqueConstraint("form_id", "member_id", "date", name="uq_responses_form_member_date"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)
    form_id = Column(String(36), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(String(36), ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=get_now, nullable=False)
    updated_at = Column(DateTime, default=get_now, onupdate=get_now, nullable=False)

    form = relationship("Form", back_populates="responses")
    member = relationship("Member", back_populates="responses")
    values = relationship("ResponseValue", back_populates="response", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Response(id={self.id}, member_id={self.member_id}, date={self.date})>"


class ResponseValue(Base):
    __tablename__ = "response_values"

    id = Column(String(36), primary_key=True, default=new_uuid)
    response_id = Column(String(36), ForeignKey("responses.id", ondelete="CASCADE"), nullable=False, index=True)
    field_id = Column(String(36), ForeignKey("form_fields.id", ondelete="CASCADE"), nullable=False)
    value = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=get_now, nullable=False)

    response = relationship("Response", back_populates="values")
