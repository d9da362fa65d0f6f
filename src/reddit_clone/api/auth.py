"""Authentication and account API endpoints.

Problems with user input come back as ``errors`` in the response body, not as
HTTP errors, so clients can show them next to the matching form fields.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reddit_clone.database import get_db
from reddit_clone.models.user import User
from reddit_clone.schemas.user import (
    AuthResponse,
    ChangePassword,
    FieldError,
    ForgotPassword,
    UserCreate,
    UserLogin,
    UserResponse,
)
from reddit_clone.services.mailer import Mailer, get_mailer
from reddit_clone.services.password_reset import consume_reset_token, request_password_reset
from reddit_clone.utils.security import (
    OptionalUser,
    create_access_token,
    hash_password,
    verify_password,
)
from reddit_clone.utils.validation import validate_password, validate_register

router = APIRouter(prefix="/auth", tags=["auth"])

DUPLICATE_ACCOUNT_MESSAGE = "Username or email is already in use."
INVALID_CREDENTIALS_MESSAGE = "Invalid username, email or password."


def user_to_response(user: User) -> UserResponse:
    """Convert a User model to UserResponse schema."""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        is_active=user.is_active,
        created_at=user.created_at,
    )


def logged_in(user: User) -> AuthResponse:
    """Build a successful response carrying a fresh access token."""
    return AuthResponse(
        user=user_to_response(user),
        access_token=create_access_token(data={"sub": str(user.id)}),
    )


def duplicate_account_errors() -> AuthResponse:
    return AuthResponse(
        errors=[
            FieldError(field="username", message=DUPLICATE_ACCOUNT_MESSAGE),
            FieldError(field="email", message=DUPLICATE_ACCOUNT_MESSAGE),
        ]
    )


def invalid_credentials_errors() -> AuthResponse:
    return AuthResponse(
        errors=[
            FieldError(field="username_or_email", message=INVALID_CREDENTIALS_MESSAGE),
            FieldError(field="password", message=INVALID_CREDENTIALS_MESSAGE),
        ]
    )


@router.post("/register", response_model=AuthResponse)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Register a new user and log them in.

    The username and email are stored lowercase and the password is hashed
    before storage. Validation problems and duplicate accounts are reported
    in ``errors``.
    """
    errors = validate_register(user_data)
    if errors:
        return AuthResponse(errors=errors)

    username = user_data.username.lower()
    email = user_data.email.strip().lower()

    existing_query = select(User.id).where(or_(User.username == username, User.email == email))
    existing_result = await db.execute(existing_query)
    if existing_result.first() is not None:
        return duplicate_account_errors()

    new_user = User(
        username=username,
        email=email,
        hashed_password=hash_password(user_data.password),
        is_active=True,
    )
    # A concurrent registration can still win the race for the unique indexes
    try:
        async with db.begin_nested():
            db.add(new_user)
            await db.flush()
    except IntegrityError:
        return duplicate_account_errors()

    await db.refresh(new_user)
    return logged_in(new_user)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Authenticate a user by username or email and return a JWT token."""
    identifier = credentials.username_or_email.strip().lower()
    if "@" in identifier:
        query = select(User).where(User.email == identifier)
    else:
        query = select(User).where(User.username == identifier)
    result = await db.execute(query)
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        return invalid_credentials_errors()

    if not user.is_active:
        return AuthResponse(
            errors=[FieldError(field="username_or_email", message="User account is inactive.")]
        )

    return logged_in(user)


@router.get("/me", response_model=UserResponse | None)
async def get_current_user_info(current_user: OptionalUser) -> UserResponse | None:
    """Get the caller's own profile, or null when not logged in."""
    if current_user is None:
        return None
    return user_to_response(current_user)


@router.post("/forgot-password", response_model=bool)
async def forgot_password(
    request: ForgotPassword,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> bool:
    """Email a password reset link.

    Always returns true, whether or not the address has an account.
    """
    await request_password_reset(db, mailer, request.email)
    return True


@router.post("/change-password", response_model=AuthResponse)
async def change_password(
    request: ChangePassword,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Set a new password using a token from a reset email, then log in."""
    errors = validate_password(request.new_password, field="new_password")
    if errors:
        return AuthResponse(errors=errors)

    user_id = await consume_reset_token(db, request.token)
    if user_id is None:
        return AuthResponse(errors=[FieldError(field="token", message="Token expired.")])

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return AuthResponse(
            errors=[FieldError(field="token", message="This user no longer exists.")]
        )

    user.hashed_password = hash_password(request.new_password)
    await db.flush()
    await db.refresh(user)

    return logged_in(user)
