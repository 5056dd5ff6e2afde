from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from taskflow.core.config import settings
from taskflow.core.database import engine, Base
from taskflow.core.errors import register_exception_handlers
from taskflow.core.logging_setup import setup_logging
from taskflow.models import task, user  # noqa: F401  (tables)
from taskflow.routers import health, auth, tasks, users, events

setup_logging(settings.LOG_LEVEL, settings.LOG_FILE or None)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="TaskFlow API",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routes
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(users.router)
app.include_router(events.router)
