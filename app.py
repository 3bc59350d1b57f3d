"""
App assembly entry point.

Re-exports the FastAPI `app` from `moneygoal.api.main` so `uvicorn app:app`
works from the repository root.
"""

from moneygoal.api.main import app  # noqa: F401
