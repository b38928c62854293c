from checkin.routers.forms import router as forms_router
from checkin.routers.responses import router as responses_router
from checkin.routers.cron import router as cron_router

__all__ = ["forms_router", "responses_router", "cron_router"]
