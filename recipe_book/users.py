from datetime import datetime, timezone
import uuid

import bcrypt
from databases import Database

from recipe_book.errors import RecipeBookError
from recipe_book.models import User


CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id VARCHAR(64) PRIMARY KEY,
    email VARCHAR(256) NOT NULL UNIQUE,
    name VARCHAR(256) NOT NULL DEFAULT '',
    password_hash VARCHAR(128) NOT NULL,
    created_at VARCHAR(40) NOT NULL
)
"""

CREATE_USER = """
INSERT INTO users (id, email, name, password_hash, created_at)
VALUES (:id, :email, :name, :password_hash, :created_at)
"""

GET_USER = "SELECT * FROM users WHERE id = :id"

GET_USER_BY_EMAIL = "SELECT * FROM users WHERE email = :email"

MIN_PASSWORD_LENGTH = 6


class UserNotFound(RecipeBookError):
    status_code = 404


class UserExists(RecipeBookError):
    status_code = 400

    def __init__(self, message: str = "An account with this email already exists") -> None:
        super().__init__(message)


class InvalidCredentials(RecipeBookError):
    status_code = 401

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class InvalidEmail(RecipeBookError):
    status_code = 400

    def __init__(self, message: str = "Please enter a valid email address") -> None:
        super().__init__(message)


class WeakPassword(RecipeBookError):
    status_code = 400

    def __init__(
        self,
        message: str = f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
    ) -> None:
        super().__init__(message)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UsersRepository:
    """Users repository."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_tables(self) -> None:
        await self.db.execute(query=CREATE_USERS_TABLE)  # pyright: ignore[reportUnknownMemberType]

    async def create(self, *, email: str, password: str, name: str = "") -> User:
        email = normalize_email(email)
        if "@" not in email:
            raise InvalidEmail()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword()
        if await self.get_by_email(email) is not None:
            raise UserExists()

        user = User(
            id=uuid.uuid4().hex,
            email=email,
            name=name.strip(),
            password_hash=hash_password(password),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            CREATE_USER,
            values={
                "id": user.id,
                "email": user.email,
                "name": user.name,
                "password_hash": user.password_hash,
                "created_at": user.created_at,
            },
        )
        return user

    async def get(self, id: str) -> User:
        row = await self.db.fetch_one(GET_USER, values={"id": id})  # pyright: ignore[reportUnknownMemberType]
        if row is None:
            raise UserNotFound(f"{id}")
        return User(**dict(row._mapping))  # pyright: ignore[reportUnknownMemberType, reportAttributeAccessIssue]

    async def get_by_email(self, email: str) -> User | None:
        row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_USER_BY_EMAIL, values={"email": normalize_email(email)}
        )
        if row is None:
            return None
        return User(**dict(row._mapping))  # pyright: ignore[reportUnknownMemberType, reportAttributeAccessIssue]

    async def authenticate(self, *, email: str, password: str) -> User:
        user = await self.get_by_email(email)
        if user is None or not check_password(password, user.password_hash):
            raise InvalidCredentials()
        return user
