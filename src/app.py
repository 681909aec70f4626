"""MultiVend FastAPI application.

Every request runs inside the marketplace domain context. Storefront pages
(and ``/api/storefront/current``) additionally get the vendor storefront
resolved from the Host header.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from marketplace.domain import marketplace
from marketplace.utils.logging import configure_logging

configure_logging()
marketplace.init()

from marketplace.api.application import create_app  # noqa: E402

app = create_app()
