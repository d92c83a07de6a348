from sqlmodel import select
from src.auth.models import User, UserStatus
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import HTTPException, status
import uuid


class AuthServices:

    async def check_user_exists(self, user_id: str, session: AsyncSession) -> User:
        """Ensure the token subject is still a live, active account.

        Tokens outlive account changes, so the actor is re-checked against the
        users table before any write is made on their behalf.

        Raises:
            HTTPException: 401 if the user is missing or no longer active.
        """
        try:
            user_uuid = uuid.UUID(str(user_id))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="You are not authorized to proceed"
            )

        statement = select(User).where(User.user_id == user_uuid)
        result = await session.exec(statement)
        user = result.first()

        if not user or user.status != UserStatus.ACTIVE:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="You are not authorized to proceed"
            )
        return user
