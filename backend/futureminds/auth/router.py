"""Account endpoints: registration, password login and token rotation."""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from futureminds.database import get_db
from .models import User
from .schemas import Token, UserCreate, UserResponse, RefreshRequest
from .service import AuthService, get_current_active_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, service: AuthService = Depends(get_auth_service)):
    """Create a student, parent or educator account."""
    return UserResponse.from_user(service.register_user(body))


@router.post("/login", response_model=Token)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
):
    """OAuth2 password flow; the username field carries the email."""
    user = service.authenticate_user(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return service.issue_tokens(
        user,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )


@router.post("/refresh", response_model=Token)
async def refresh(body: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    """Swap a refresh token for a new token pair."""
    return service.refresh_tokens(body.refresh_token)


@router.post("/logout")
async def logout(body: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    service.revoke_refresh_token(body.refresh_token)
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_active_user)):
    return UserResponse.from_user(current_user)
