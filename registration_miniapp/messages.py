from __future__ import annotations

AUTH_REQUIRED = "Authorization data is required"
AUTH_INVALID = "Unauthorized: Invalid Telegram init data"
AUTH_NO_USER = "Unable to extract user ID from Telegram data"

VALIDATION_FAILED = "Validation failed"
BODY_NOT_OBJECT = "Request body must be a JSON object"

ALREADY_REGISTERED = "User already registered"

INTERNAL_ERROR = "Internal Server Error"
UNEXPECTED_ERROR = "An unexpected error occurred"
STORE_TIMEOUT = "Request to the registration store timed out"

# Field messages keyed by request field name; "missing" is used when the
# field is absent, "invalid" for any other violation.
FIELD_MESSAGES = {
    "fullName": {
        "missing": "Full name is required",
        "invalid": "Full name is required",
    },
    "email": {
        "missing": "Email is required",
        "invalid": "Invalid email format",
    },
    "phone": {
        "missing": "Phone number is required",
        "invalid": "Phone number is required",
    },
    "experienceLevel": {
        "missing": "Experience level must be one of: beginner, intermediate, advanced, expert",
        "invalid": "Experience level must be one of: beginner, intermediate, advanced, expert",
    },
    "consentPd": {
        "missing": "Consent to personal data processing is required",
        "invalid": "Consent to personal data processing is required",
    },
    "consentMarketing": {
        "missing": "Marketing consent is required",
        "invalid": "Marketing consent must be a boolean",
    },
}

WELCOME_MESSAGE = (
    "\U0001F44B Добро пожаловать!\n\n"
    "Нажмите кнопку ниже, чтобы открыть форму регистрации."
)

WEBAPP_UNAVAILABLE = (
    "Форма регистрации временно недоступна. Попробуйте позже."
)

OPEN_FORM_BUTTON = "\U0001F4DD Регистрация"

__all__ = [
    "AUTH_REQUIRED",
    "AUTH_INVALID",
    "AUTH_NO_USER",
    "VALIDATION_FAILED",
    "BODY_NOT_OBJECT",
    "ALREADY_REGISTERED",
    "INTERNAL_ERROR",
    "UNEXPECTED_ERROR",
    "STORE_TIMEOUT",
    "FIELD_MESSAGES",
    "WELCOME_MESSAGE",
    "WEBAPP_UNAVAILABLE",
    "OPEN_FORM_BUTTON",
]
