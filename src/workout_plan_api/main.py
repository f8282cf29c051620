"""Main FastAPI application."""
from fastapi import FastAPI

from workout_plan_api.api.routes import router

# CORS headers are set on every response by the dispatcher, including the
# OPTIONS preflight, so no CORS middleware is installed.
app = FastAPI(title="Workout Plan API")

app.include_router(router)
