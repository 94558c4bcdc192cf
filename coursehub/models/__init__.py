from coursehub.database import Base

from .associations import course_students, user_favorites
from .course import Course
from .enrollment import Enrollment
from .message import Message
from .notification import Notification
from .rating import CourseRating
from .users import User

# Import all models here
# This way when we import Base all models are registered on its metadata
# and create_all sees every table
