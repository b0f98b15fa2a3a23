import logging

from fastapi import FastAPI

from physics_practice.core.errors import register_error_handlers
from physics_practice.core.logging_middleware import LoggingMiddleware
from physics_practice.db.init_db import init_db
from physics_practice.db.session import engine

from physics_practice.routers.assignments import router as assignments_router
from physics_practice.routers.auth import router as auth_router
from physics_practice.routers.problems import router as problems_router
from physics_practice.routers.students import router as students_router
from physics_practice.routers.submissions import router as submissions_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Physics Practice")

# Middleware
app.add_middleware(LoggingMiddleware)

register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


@app.on_event("startup")
def on_startup():
    init_db()


@app.on_event("shutdown")
def on_shutdown():
    # close pooled connections
    engine.dispose()


# Include routers
app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(problems_router, prefix="/api/problems", tags=["problems"])
app.include_router(assignments_router, prefix="/api/assignments", tags=["assignments"])
app.include_router(students_router, prefix="/api/students", tags=["students"])

# submit-answer and submission listing (routes define their own paths)
app.include_router(submissions_router, prefix="/api", tags=["submissions"])
