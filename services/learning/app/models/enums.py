import enum

from sqlalchemy import Enum as SAEnum

from shared.constants import Role


class InstructorStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BLOCKED = "blocked"


class OTPPurpose(str, enum.Enum):
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


class EnrollmentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


# Shared column types; values (not member names) are what the database stores.
role_enum = SAEnum(Role, name="account_role", values_callable=_values)
instructor_status_enum = SAEnum(
    InstructorStatus, name="instructor_status", values_callable=_values
)
otp_purpose_enum = SAEnum(OTPPurpose, name="otp_purpose", values_callable=_values)
enrollment_status_enum = SAEnum(
    EnrollmentStatus, name="enrollment_status", values_callable=_values
)
