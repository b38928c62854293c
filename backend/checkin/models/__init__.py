from checkin.models.form import Form, FormField
from checkin.models.response import Member, Response, ResponseValue

__all__ = ["Form", "FormField", "Member", "Response", "ResponseValue"]
