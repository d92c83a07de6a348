import asyncio
from datetime import timedelta
from sqlmodel import select
from src.db.main import async_session_maker, init_db
from src.auth.models import User, Role
from src.utils.auth import generate_password_hash, create_token

async def create_user(email: str, full_name: str, password: str, role: str):
    role_enum = Role.ADMIN if role.lower() == "admin" else Role.STAFF

    await init_db()

    async with async_session_maker() as session:
        # Check if user already exists
        statement = select(User).where(User.email == email.lower())
        result = await session.exec(statement)
        existing_user = result.first()

        if existing_user:
            print(f"Error: User with email '{email}' already exists.")
            return

        new_user = User(
            email=email.lower(),
            full_name=full_name,
            password_hash=generate_password_hash(password),
            role=role_enum
        )

        session.add(new_user)
        try:
            await session.commit()
            await session.refresh(new_user)
        except Exception as e:
            await session.rollback()
            print(f"Failed to create user: {e}")
            return

        token = create_token(
            {"user_id": new_user.user_id, "role": new_user.role.value},
            expiry_delta=timedelta(hours=2),
            type="access"
        )
        print(f"Successfully created user!")
        print(f"Email: {new_user.email}")
        print(f"Full Name: {new_user.full_name}")
        print(f"User ID: {new_user.user_id}")
        print(f"Role: {new_user.role.value}")
        print("-" * 30)
        print(f"Access token (2h): {token}")

if __name__ == "__main__":
    import sys

    if len(sys.argv) == 5:
        # python seed_users.py <email> <full_name> <password> <role>
        email = sys.argv[1]
        full_name = sys.argv[2]
        password = sys.argv[3]
        role = sys.argv[4]
        asyncio.run(create_user(email, full_name, password, role))
    else:
        print("Usage: python seed_users.py <email> <full_name> <password> <role>")
        print("Example: python seed_users.py admin@example.com 'Admin User' mysecretpassword admin")
