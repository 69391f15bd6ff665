"""Domain exceptions for the learning service.

Services raise these; they never import FastAPI. Each carries a stable
machine-readable ``code`` and a human ``message``. ``domain_error_handler``
renders them into the shared error envelope with the category's status.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from shared.middleware.error_handler import error_response

logger = logging.getLogger(__name__)


class DomainError(Exception):
    code: str = "domain_error"
    message: str = "Request could not be completed"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ── Categories ────────────────────────────────────────────────────────────────


class ValidationError(DomainError):
    code = "validation_error"
    message = "Invalid input"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(DomainError):
    code = "not_found"
    message = "Resource not found"
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationError(DomainError):
    code = "not_authenticated"
    message = "Authentication required"
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(DomainError):
    code = "forbidden"
    message = "You are not allowed to perform this action"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(DomainError):
    code = "conflict"
    message = "Request conflicts with the current state"
    status_code = status.HTTP_409_CONFLICT


class ExternalServiceError(DomainError):
    code = "external_service_error"
    message = "An upstream service failed"
    status_code = status.HTTP_502_BAD_GATEWAY


# ── Validation ────────────────────────────────────────────────────────────────


class InvalidEmailFormat(ValidationError):
    code = "invalid_email_format"
    message = "Invalid email format"


class CodeMismatch(ValidationError):
    code = "code_mismatch"
    message = "Invalid OTP"


class CodeExpired(ValidationError):
    code = "code_expired"
    message = "OTP has expired. Request a new one."


class InvalidAmount(ValidationError):
    code = "invalid_amount"
    message = "Amount must be a positive integer"


class InvalidPaymentSignature(ValidationError):
    code = "invalid_payment_signature"
    message = "Payment signature verification failed"


class PasswordMismatch(ValidationError):
    code = "password_mismatch"
    message = "Passwords do not match"


class PasswordNotSet(ValidationError):
    code = "password_not_set"
    message = "This account signs in with an external provider and has no password"


# ── Not found ─────────────────────────────────────────────────────────────────


class AccountNotFound(NotFoundError):
    code = "account_not_found"
    message = "Account not found"


class CodeNotFound(NotFoundError):
    code = "code_not_found"
    message = "No pending OTP for this email"


class InstructorNotFound(NotFoundError):
    code = "instructor_not_found"
    message = "Instructor not found"


class CourseNotFound(NotFoundError):
    code = "course_not_found"
    message = "Course not found"


class ParentNotFound(NotFoundError):
    code = "parent_not_found"
    message = "Parent course or module not found"


class ModuleNotFound(NotFoundError):
    code = "module_not_found"
    message = "Module not found"


class LectureNotFound(NotFoundError):
    code = "lecture_not_found"
    message = "Lecture not found"


# ── Authentication / tokens ───────────────────────────────────────────────────


class ExpiredToken(AuthenticationError):
    code = "expired_token"
    message = "Token has expired"


class InvalidSignature(AuthenticationError):
    code = "invalid_signature"
    message = "Token is invalid"


class TokenMismatch(AuthenticationError):
    code = "token_mismatch"
    message = "Refresh token has been superseded. Sign in again."


class InvalidCredentials(AuthenticationError):
    code = "invalid_credentials"
    message = "Invalid email or password"


class NotAuthenticated(AuthenticationError):
    code = "not_authenticated"
    message = "Not authenticated"


# ── Authorization ─────────────────────────────────────────────────────────────


class InstructorNotVerified(AuthorizationError):
    code = "instructor_not_verified"
    message = "Instructor email is not verified"


class InstructorNotApproved(AuthorizationError):
    code = "instructor_not_approved"
    message = "Instructor account is not approved"


class NotEnrolled(AuthorizationError):
    code = "not_enrolled"
    message = "You are not enrolled in this course"


class ModuleLocked(AuthorizationError):
    code = "module_locked"
    message = "Complete the previous module to unlock this one"


class AccountBlocked(AuthorizationError):
    code = "account_blocked"
    message = "Account is blocked"


class NotCourseOwner(AuthorizationError):
    code = "not_course_owner"
    message = "Only the course instructor can modify this course"


class InsufficientRole(AuthorizationError):
    code = "insufficient_role"
    message = "Your role does not allow this action"


class ResetNotAuthorized(AuthorizationError):
    code = "reset_not_authorized"
    message = "Verify the reset OTP before setting a new password"


# ── Conflict ──────────────────────────────────────────────────────────────────


class AccountAlreadyExists(ConflictError):
    code = "account_already_exists"
    message = "An account with this email already exists"


class InvalidReorderSet(ConflictError):
    code = "invalid_reorder_set"
    message = "Reorder must list every sibling exactly once"


class InvalidStatusTransition(ConflictError):
    code = "invalid_status_transition"
    message = "Status transition is not allowed"


class OrderConflict(ConflictError):
    code = "order_conflict"
    message = "Sibling order changed concurrently. Retry the request."


# ── External services ─────────────────────────────────────────────────────────


class NotificationDeliveryFailed(ExternalServiceError):
    code = "notification_delivery_failed"
    message = "Could not send the email. Use resend to try again."


class PaymentProviderError(ExternalServiceError):
    code = "payment_provider_error"
    message = "Payment provider request failed"


# ── HTTP rendering ────────────────────────────────────────────────────────────


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info(
        "Domain error %s (%s) request_id=%s",
        exc.code,
        exc.status_code,
        getattr(request.state, "request_id", None),
    )
    response = error_response(request, exc.status_code, exc.code, exc.message)
    if isinstance(exc, AuthenticationError):
        response.headers["WWW-Authenticate"] = "Bearer"
    return response
