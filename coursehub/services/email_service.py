from typing import Any, Dict, List

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import EmailStr

from coursehub.config import settings


def get_mail_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.SMTP_USERNAME,
        MAIL_PASSWORD=settings.SMTP_PASSWORD,
        MAIL_FROM=settings.EMAIL_FROM,
        MAIL_PORT=settings.SMTP_PORT,
        MAIL_SERVER=settings.SMTP_SERVER,
        MAIL_STARTTLS=settings.MAIL_STARTTLS,
        MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
        USE_CREDENTIALS=bool(settings.SMTP_USERNAME),
        SUPPRESS_SEND=int(settings.MAIL_SUPPRESS_SEND),
    )


async def send_email(subject: str, recipients: List[EmailStr], body: str):
    message = MessageSchema(
        subject=subject,
        recipients=recipients,
        body=body,
        subtype=MessageType.html,
    )
    fm = FastMail(get_mail_config())
    await fm.send_message(message)


async def send_welcome_email(email: EmailStr, username: str):
    html = f"""
    <h1>Welcome to CourseHub!</h1>
    <p>Hello {username},</p>
    <p>Thank you for joining CourseHub. You can now explore courses,
    enroll in your favorite ones, and start your learning journey.</p>
    <p>Happy learning!</p>
    """
    await send_email("Welcome to CourseHub", [email], html)


async def send_course_enrollment_email(email: EmailStr, username: str, course: Dict[str, Any]):
    dashboard = f"{settings.FRONTEND_URL}/dashboard"
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1>Course Enrollment Confirmed!</h1>
      <p>Hello {username},</p>
      <p>Thank you for enrolling in <strong>{course['title']}</strong>.
      Your purchase has been completed successfully!</p>
      <h3>Course Details:</h3>
      <p><strong>Course:</strong> {course['title']}</p>
      <p><strong>Instructor:</strong> {course.get('instructor_name') or ''}</p>
      <p><strong>Duration:</strong> {course.get('duration') or ''}</p>
      <p><strong>Level:</strong> {course.get('level') or ''}</p>
      <p><strong>Amount Paid:</strong> ₹{course['price']}</p>
      <p>You can access your course from your <a href="{dashboard}">dashboard</a>.</p>
      <p>This is an automated email. Please do not reply to this message.</p>
    </div>
    """
    await send_email(f"CourseHub: Your Enrollment in {course['title']} is Confirmed!", [email], html)
