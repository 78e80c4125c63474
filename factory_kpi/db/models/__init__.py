"""
ORM models for users, KPIs, action items, stations, customer claims and
persisted dashboard state.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .users import (  # noqa: F401
    User,
    Department,
    ActivityLog,
)
from .kpi import (  # noqa: F401
    KpiData,
    ActionItem,
)
from .stations import (  # noqa: F401
    ProductionStation,
    StationDataEntry,
    StationKpi,
)
from .claims import (  # noqa: F401
    CustomerClaim,
    ClaimComment,
    ClaimWorkflow,
    ClaimAttachment,
)
from .dashboard import (  # noqa: F401
    UserPreference,
    CalendarMonth,
)
