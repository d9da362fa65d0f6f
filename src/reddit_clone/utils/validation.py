"""Input checks that report problems as field errors instead of raising."""

from email_validator import EmailNotValidError, validate_email

from reddit_clone.schemas.user import FieldError, UserCreate

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 100
# bcrypt only reads the first 72 bytes and newer releases refuse anything longer
PASSWORD_MAX_BYTES = 72


def validate_password(password: str, field: str = "password") -> list[FieldError]:
    """Check password length bounds, in characters and in encoded bytes."""
    if len(password) < PASSWORD_MIN_LENGTH:
        return [
            FieldError(
                field=field,
                message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters.",
            )
        ]
    if len(password) > PASSWORD_MAX_LENGTH:
        return [
            FieldError(
                field=field,
                message=f"Password must be at most {PASSWORD_MAX_LENGTH} characters.",
            )
        ]
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return [
            FieldError(
                field=field,
                message=f"Password must be at most {PASSWORD_MAX_BYTES} bytes.",
            )
        ]
    return []


def validate_register(options: UserCreate) -> list[FieldError]:
    """Validate registration input.

    Returns every problem found, keyed by field. An empty list means the
    input is acceptable.
    """
    errors: list[FieldError] = []

    try:
        validate_email(options.email, check_deliverability=False)
    except EmailNotValidError:
        errors.append(FieldError(field="email", message="Invalid email."))

    username = options.username
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        errors.append(
            FieldError(
                field="username",
                message=(
                    f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters."
                ),
            )
        )
    elif not username.replace("_", "").replace("-", "").isalnum():
        errors.append(
            FieldError(
                field="username",
                message="Username can only contain letters, numbers, underscores, and hyphens.",
            )
        )

    errors.extend(validate_password(options.password))
    return errors
