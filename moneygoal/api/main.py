"""
FastAPI app assembly: middleware, router wiring and the recurring-expense
scheduler lifecycle.
"""
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from moneygoal.db.database import _is_pytest_runtime
from moneygoal.api.deps import get_current_user_context_or_guest
from moneygoal.api.auth import router as auth_router
from moneygoal.api.goals import router as goals_router
from moneygoal.api.transactions import router as transactions_router
from moneygoal.api.categories import router as categories_router
from moneygoal.api.category_learning import router as category_learning_router
from moneygoal.api.settings import router as settings_router
from moneygoal.api.recurring_expenses import router as recurring_expenses_router
from moneygoal.api.budgets import router as budgets_router
from moneygoal.api.bills import router as bills_router
from moneygoal.api.currency import router as currency_router
from moneygoal.api.wise import router as wise_router
from moneygoal.api.webhooks import router as webhooks_router
from moneygoal.api.csv_import import router as csv_router
from moneygoal.api.plaid import router as plaid_router
from moneygoal.api.whatsapp import router as whatsapp_router
from moneygoal.api.chat import router as chat_router
from moneygoal.api.insights import router as insights_router
from moneygoal.utils.feature_flags import get_feature_flags, recurring_scheduler_enabled
from moneygoal.workers.recurring_scheduler import get_recurring_scheduler

# Database schema is managed by Alembic migrations.


def start_background_workers():
    if _is_pytest_runtime():
        return
    if not recurring_scheduler_enabled():
        logger.info("Recurring expense scheduler disabled via RECURRING_SCHEDULER_ENABLED")
        return
    get_recurring_scheduler().start()


def stop_background_workers():
    scheduler = get_recurring_scheduler()
    if scheduler.running:
        scheduler.stop()


@asynccontextmanager
async def lifespan(app: FastAPI):
    start_background_workers()
    yield
    stop_background_workers()


app = FastAPI(
    title="MoneyGoal API",
    description="Personal finance backend: savings goals, transactions, budgets, bills and an AI advisor.",
    version="1.0.0",
    lifespan=lifespan,
)

# Avoid implicit trailing-slash redirects for predictable URLs
try:
    app.router.redirect_slashes = False
except Exception:
    pass

_DEFAULT_ORIGINS = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
]


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS")
    if not raw:
        return list(_DEFAULT_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/user-info")
def get_user_info(user_context=Depends(get_current_user_context_or_guest)):
    """Return the caller's identity and the feature flags the UI cares about."""
    user, current_user = user_context
    flags = get_feature_flags()
    if user is None:
        return {"authenticated": False, **flags}
    return {
        "authenticated": True,
        "user_id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "phone_number": user.phone_number,
        "auth_method": current_user.get("auth"),
        **flags,
    }


app.include_router(auth_router)
app.include_router(goals_router)
app.include_router(transactions_router)
app.include_router(categories_router)
app.include_router(category_learning_router)
app.include_router(settings_router)
app.include_router(recurring_expenses_router)
app.include_router(budgets_router)
app.include_router(bills_router)
app.include_router(currency_router)
app.include_router(wise_router)
app.include_router(webhooks_router)
app.include_router(csv_router)
app.include_router(plaid_router)
app.include_router(whatsapp_router)
app.include_router(chat_router)
app.include_router(insights_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "moneygoal"}
