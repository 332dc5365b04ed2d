import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ewm.core.config import APP_NAME, LOG_LEVEL
from ewm.core.errors import ServiceError
from ewm.core.logging_config import setup_logging
from ewm.database.db import Base, engine
from ewm.models import categories, events, requests, users  # noqa: F401  (register tables)
from ewm.routes import events_admin, events_private, events_public
from ewm.routes import categories as category_routes
from ewm.routes import requests as request_routes
from ewm.routes import users as user_routes

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME)

# Configure CORS
origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "reason": exc.reason},
    )


# Create all tables (in production, use migrations such as Alembic)
Base.metadata.create_all(bind=engine)

# Include the routers
app.include_router(user_routes.router)
app.include_router(category_routes.router)
app.include_router(events_private.router)
app.include_router(request_routes.router)
app.include_router(events_admin.router)
app.include_router(events_public.router)


@app.get("/health")
def health():
    return {"status": "ok"}
