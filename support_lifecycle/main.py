# support_lifecycle/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI

from support_lifecycle.config import get_settings
from support_lifecycle.logging_config import configure_logging
from support_lifecycle.routers import account_router, admin_support_router, jobs_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail fast on bad environment before serving traffic
    settings = get_settings()
    configure_logging(json_format=settings.LOG_JSON, level=settings.LOG_LEVEL)
    yield


app = FastAPI(title="Support Lifecycle Engine", lifespan=lifespan)

app.include_router(admin_support_router)
app.include_router(account_router)
app.include_router(jobs_router)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> dict:
    return {"status": "ok", "service": "support-lifecycle"}
