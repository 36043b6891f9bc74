"""Account API routes."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, EmailStr

from ...app import Application
from ...errors import ChatError
from ...logging_config import get_logger
from ..errors import http_error

logger = get_logger(__name__)


class RegisterRequest(BaseModel):
    """Request model for registration."""

    email: EmailStr
    password: str
    name: str


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Public view of a user."""

    id: int
    name: str
    email: str


class AccountResponse(BaseModel):
    """Response model for register and login."""

    success: bool
    message: str | None = None
    user: UserResponse


class UsersResponse(BaseModel):
    """Response model for the user list."""

    success: bool
    users: list[UserResponse]


def create_accounts_router(app: Application) -> APIRouter:
    """Create accounts router."""
    router = APIRouter(prefix="/api", tags=["accounts"])

    @router.post("/register", response_model=AccountResponse)
    async def register(request: RegisterRequest) -> dict:
        """Create an account."""
        try:
            user = await app.accounts.register(request.email, request.password, request.name)
        except ChatError as e:
            raise http_error(e)
        except Exception as e:
            logger.error("Registration error: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail="Registration failed")

        return {
            "success": True,
            "message": "User created successfully",
            "user": user.public(),
        }

    @router.post("/login", response_model=AccountResponse)
    async def login(request: LoginRequest) -> dict:
        """Check credentials."""
        try:
            user = await app.accounts.login(request.email, request.password)
        except ChatError as e:
            raise http_error(e)
        except Exception as e:
            logger.error("Login error: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail="Login failed")

        return {"success": True, "user": user.public()}

    @router.get("/users", response_model=UsersResponse)
    async def list_users() -> dict:
        """All users ordered by name."""
        try:
            users = await app.accounts.list_users()
        except ChatError as e:
            raise http_error(e)

        return {"success": True, "users": [u.public() for u in users]}

    return router
