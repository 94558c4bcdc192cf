import logging
from typing import Any, Dict

from asgiref.sync import async_to_sync
from celery import Celery

from coursehub.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "coursehub",
    broker=settings.redis_url,
    backend=settings.redis_url,
)


@celery_app.task
def send_welcome_email_task(email: str, username: str):
    from coursehub.services.email_service import (  # Import inside the task
        send_welcome_email,
    )

    async_to_sync(send_welcome_email)(email, username)
    logger.info("Welcome email sent to %s", email)


@celery_app.task
def send_enrollment_email_task(email: str, username: str, course: Dict[str, Any]):
    from coursehub.services.email_service import (  # Import inside the task
        send_course_enrollment_email,
    )

    async_to_sync(send_course_enrollment_email)(email, username, course)
    logger.info("Enrollment email sent to %s for course: %s", email, course.get("title"))
