import logging
from uuid import uuid4

import asyncpg
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from emergency_hub.auth.models import ProfileUpdate, Session, UserLogin, UserRegister, UserResponse
from emergency_hub.auth.utils import create_access_token, decode_token, hash_password, verify_password
from emergency_hub.shared.db import execute_query
from emergency_hub.shared.errors import AuthenticationFailed, NotFound, PermissionDenied, ValidationError
from emergency_hub.shared.utils import serialize_row

logger = logging.getLogger("auth.manager")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

USER_COLUMNS = "id, email, name, phone, role, location, created_at, last_active_at"


def user_from_row(row) -> UserResponse:
    return UserResponse(**serialize_row(row))


async def register_user(user: UserRegister) -> UserResponse:
    """Register a new user"""
    logger.info(f"Attempting to register user: {user.email}")
    user_id = str(uuid4())
    try:
        result = await execute_query(
            f"""
            INSERT INTO users (id, email, name, phone, password_hash, role, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, NOW())
            RETURNING {USER_COLUMNS}
            """,
            (user_id, user.email, user.name, user.phone, hash_password(user.password), user.role.value),
            fetch_one=True
        )
    except asyncpg.UniqueViolationError:
        logger.warning(f"Registration failed: email '{user.email}' already exists.")
        raise ValidationError("Email already registered")
    logger.info(f"User registered successfully: {user.email} (id: {user_id})")
    return user_from_row(result)


async def login_user(credentials: UserLogin) -> dict:
    """Authenticate user and return JWT and user data"""
    email = credentials.email.strip().lower()
    logger.info(f"Attempting login for user: {email}")
    result = await execute_query(
        f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = $1",
        (email,),
        fetch_one=True
    )
    if not result or not verify_password(credentials.password, result["password_hash"]):
        logger.warning(f"Login failed: Invalid credentials for user '{email}'.")
        raise AuthenticationFailed("Invalid credentials")

    token = create_access_token({"sub": str(result["id"]), "role": result["role"]})
    await execute_query(
        "UPDATE users SET last_active_at = NOW() WHERE id = $1",
        (result["id"],),
    )
    row = dict(result)
    row.pop("password_hash")
    logger.info(f"User '{email}' authenticated successfully.")
    return {"token": token, "user": user_from_row(row)}


async def get_current_user(token: str = Depends(oauth2_scheme)) -> Session:
    """Resolve the bearer token into an explicit Session"""
    payload = decode_token(token)
    if not payload or "sub" not in payload:
        logger.warning("Invalid token provided.")
        raise AuthenticationFailed("Invalid token")

    result = await execute_query(
        "SELECT id, email, name, phone, role FROM users WHERE id = $1",
        (payload["sub"],),
        fetch_one=True
    )
    if not result:
        logger.warning(f"User not found for id: {payload['sub']}")
        raise AuthenticationFailed("User not found")

    return Session(
        user_id=str(result["id"]),
        name=result["name"],
        email=result["email"],
        phone=result["phone"],
        role=result["role"],
    )


def require_operator(session: Session = Depends(get_current_user)) -> Session:
    """Only responders and admins may act on reports."""
    if not session.is_operator:
        logger.warning(f"Unauthorized operator action attempted by user {session.user_id} ({session.role.value})")
        raise PermissionDenied("Only responders and admins can update emergencies")
    return session


async def get_profile(session: Session) -> UserResponse:
    result = await execute_query(
        f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
        (session.user_id,),
        fetch_one=True
    )
    if not result:
        raise NotFound("User not found")
    return user_from_row(result)


async def update_profile(session: Session, changes: ProfileUpdate) -> UserResponse:
    """Update name, phone and home location of the current user"""
    fields = changes.model_dump(exclude_none=True)
    if not fields:
        return await get_profile(session)

    assignments = []
    params = []
    for index, (column, value) in enumerate(fields.items(), start=1):
        assignments.append(f"{column} = ${index}")
        params.append(value)
    params.append(session.user_id)

    logger.info(f"User {session.user_id} updating profile fields: {list(fields)}")
    result = await execute_query(
        f"""
        UPDATE users SET {', '.join(assignments)}, last_active_at = NOW()
        WHERE id = ${len(params)}
        RETURNING {USER_COLUMNS}
        """,
        tuple(params),
        fetch_one=True
    )
    if not result:
        raise NotFound("User not found")
    return user_from_row(result)
