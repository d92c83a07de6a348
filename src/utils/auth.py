"""Actor identity for the back-office API.

Tokens are issued by the external auth service; this module only knows how
to encode/decode them (the encoder is used by the seeding script and the
tests) and how to turn a request into an actor ``{user_id, user_role}``.

Security notes:
- Passwords are hashed using bcrypt with a per-password salt.
- JWTs are signed symmetrically with ``Config.JWT_KEY``.
"""

import bcrypt
from datetime import datetime, timedelta, timezone
import jwt
import uuid
from src.config import Config
from fastapi import HTTPException, status, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from src.db.redis import redis_client
from src.errors import ForbiddenError
from src.utils.logger import app_logger


security = HTTPBearer(auto_error=False)


def generate_password_hash(password: str) -> str:
    """Return a bcrypt hash (utf-8 string) for the plaintext password."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_token(user_data: dict, expiry_delta: timedelta, type: str = "access"):

    current_time = datetime.now(timezone.utc)
    payload = {
        'iat': current_time,
        'exp': current_time + expiry_delta,
        'jti': str(uuid.uuid4()),
        'role': str(user_data.get('role')),
        'sub': str(user_data.get('user_id')),
        'type': type.lower(),
    }

    return jwt.encode(
        payload=payload,
        key=Config.JWT_KEY,
        algorithm=Config.JWT_ALGORITHM
    )


def decode_token(token: str) -> dict:

    try:
        token_data = jwt.decode(
            jwt=token,
            key=Config.JWT_KEY,
            algorithms=[Config.JWT_ALGORITHM],
            leeway=10
        )

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token."
        )
    return token_data


async def get_current_user(request: Request, bearer_token: HTTPAuthorizationCredentials = Depends(security)):
    """Resolve the calling actor from a bearer token or the access_token cookie.

    Returns:
        dict: ``{"user_id": str, "user_role": str}``

    Raises:
        HTTPException: 401 if no credentials, the token is invalid, expired,
            revoked, or not an access token.
    """
    token = None

    if bearer_token and bearer_token.credentials:
        token = bearer_token.credentials
    if not token:
        token = request.cookies.get("access_token")

    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    token_decoded = decode_token(token)

    # Revoked tokens are kept in redis until their natural expiry
    jti = token_decoded.get('jti')
    if jti and await redis_client.get(jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked (User logged out)"
        )

    if token_decoded.get('type') != 'access':
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type. Access token required."
        )

    user_id = token_decoded.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing user ID."
        )

    return {
        "user_id": user_id,
        "user_role": token_decoded.get("role")
    }

def role_required(allowed_roles: list):
    """Dependency factory for role-based access control."""
    async def role_checker(current_user: dict = Depends(get_current_user)):
        if current_user.get("user_role") not in allowed_roles:
            app_logger.warning(
                f"role {current_user.get('user_role')} denied for user {current_user.get('user_id')}"
            )
            raise ForbiddenError()
        return current_user

    return role_checker
