# Routers package
from . import appointments_router
from . import analytics_router
from . import billing_router
from . import doctors_router
from . import patients_router
from . import records_router
from . import reports_router

__all__ = [
    "appointments_router",
    "analytics_router",
    "billing_router",
    "doctors_router",
    "patients_router",
    "records_router",
    "reports_router",
]
