# Schemas package (re-export feature modules for stable imports)
from .appointments.appointment import *
from .billing.billing import *
from .patients.patient import *
from .records.records import *
from .reports.report import *
from .analytics.analytics import *
from .common.common import *
