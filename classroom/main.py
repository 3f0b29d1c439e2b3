import logging

from fastapi import FastAPI

from classroom.core.config import LOG_LEVEL
from classroom.core.errors import register_error_handlers
from classroom.core.logging_middleware import LoggingMiddleware
from classroom.db.init_db import init_db
from classroom.routers.activity import router as activity_router
from classroom.routers.assignments import router as assignments_router
from classroom.routers.attendance import router as attendance_router
from classroom.routers.auth import router as auth_router
from classroom.routers.classes import router as classes_router
from classroom.routers.dashboard import router as dashboard_router
from classroom.routers.grades import router as grades_router
from classroom.routers.materials import router as materials_router
from classroom.routers.newsroom import router as newsroom_router
from classroom.routers.notifications import router as notifications_router
from classroom.routers.students import router as students_router
from classroom.routers.submissions import router as submissions_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Classroom Manager")

# Middleware
app.add_middleware(LoggingMiddleware)
register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(classes_router, prefix="/classes", tags=["classes"])
app.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
app.include_router(students_router, prefix="/students", tags=["students"])
app.include_router(activity_router, prefix="/activity", tags=["activity"])
app.include_router(newsroom_router, prefix="/newsroom", tags=["newsroom"])
app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])

# These routers define full paths (/classes/{id}/..., /assignments/..., ...)
app.include_router(attendance_router)
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(grades_router)
app.include_router(materials_router)
