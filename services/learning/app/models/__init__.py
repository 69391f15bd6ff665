# Import all models so Alembic can discover them via Base.metadata
from .account import Account
from .course import Course
from .course_module import CourseModule
from .enrollment import Enrollment
from .enums import EnrollmentStatus, InstructorStatus, OTPPurpose
from .lecture import Lecture
from .lecture_progress import LectureProgress
from .one_time_code import OneTimeCode

__all__ = [
    "Account",
    "Course",
    "CourseModule",
    "Enrollment",
    "EnrollmentStatus",
    "InstructorStatus",
    "Lecture",
    "LectureProgress",
    "OTPPurpose",
    "OneTimeCode",
]
