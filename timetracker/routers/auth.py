"""Auth router - API endpoints for authentication."""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import BaseModel

from timetracker.database import get_database
from timetracker.exceptions import NotFoundError
from timetracker.models.user import User, UserCreate
from timetracker.services.auth_service import AuthService, InvalidCredentialsError
from timetracker.utils.auth import verify_access_token


router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


class LoginRequest(BaseModel):
    """Login request model."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """Token response model."""

    access_token: str
    token_type: str = "bearer"


def get_auth_service(db=Depends(get_database)) -> AuthService:
    """Dependency providing the auth service."""
    return AuthService(db)


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, service: AuthService = Depends(get_auth_service)):
    """
    Register a new user.

    Raises:
        HTTPException: If email is already registered or the password is too short (400)
    """
    try:
        return await service.register_user(
            email=user.email,
            password=user.password,
            name=user.name,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.post("/login", response_model=TokenResponse)
async def login(login_req: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    Login user and return access token.

    Raises:
        HTTPException: If credentials are invalid (401)
    """
    try:
        token = await service.login(
            email=login_req.email,
            password=login_req.password,
        )
        return TokenResponse(access_token=token)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    Dependency to get current user ID from JWT token.

    Raises:
        HTTPException: If the token is missing or invalid (401)
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return verify_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


@router.get("/me", response_model=User)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
):
    """
    Get current authenticated user.

    Raises:
        HTTPException: If user not found (404)
    """
    try:
        return await service.get_user_by_id(user_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
