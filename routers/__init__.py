from .analytics_api import router as analytics_api_router
from .approvals_api import router as approvals_api_router
from .borrowings_api import router as borrowings_api_router
from .settings_api import router as settings_api_router
from .stock_api import router as stock_api_router
from .stock_usages_api import router as stock_usages_api_router
from .tools_api import router as tools_api_router
from .users_api import router as users_api_router

ALL_ROUTERS = (
    tools_api_router,
    stock_api_router,
    borrowings_api_router,
    approvals_api_router,
    stock_usages_api_router,
    analytics_api_router,
    users_api_router,
    settings_api_router,
)
