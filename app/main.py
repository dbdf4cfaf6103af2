"""
Budget Tracker - API entry point

Serve with any ASGI server, e.g.:
    uvicorn app.main:app --reload

Configuration comes from the environment / .env
(DATABASE_URL, JWT_SECRET, APP_ENVIRONMENT, CORS_ORIGINS, ...).
"""

from budget_tracker.api import create_app


app = create_app()
