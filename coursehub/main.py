import logging
import traceback
from logging.config import dictConfig

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from coursehub.config import LogConfig, settings
from coursehub.controllers import admin, chat, courses, notifications, upload, users
from coursehub.database import Base, engine
from coursehub.dependencies.getdb import get_db
from coursehub.middlewares.cors import setup_cors
from coursehub.middlewares.logging_middleware import LoggingMiddleware
from coursehub.services.user_service import create_admin_user

dictConfig(LogConfig().model_dump())
logger = logging.getLogger("coursehub")

app = FastAPI(title="CourseHub API")

setup_cors(app)
app.add_middleware(LoggingMiddleware)

app.include_router(users.router)
app.include_router(courses.router)
app.include_router(admin.router)
app.include_router(chat.router)
app.include_router(notifications.router)
app.include_router(upload.router)


def _summarize_errors(errors):
    return [{"loc": list(error.get("loc", ())), "msg": error.get("msg")} for error in errors]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message, "errors": _summarize_errors(errors)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    content = {"detail": "Internal server error"}
    if settings.DEBUG:
        content["error"] = str(exc)
        content["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@app.on_event("startup")
async def startup_event():
    """Create the tables and the bootstrap admin user"""
    Base.metadata.create_all(bind=engine)
    db = next(get_db())
    try:
        create_admin_user(db)
    finally:
        db.close()


@app.get("/health")
async def health():
    return {"status": "ok"}
