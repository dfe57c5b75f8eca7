"""Accounts, token issuing and the current-user dependencies."""
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from futureminds.database import get_db
from futureminds.models import Profile, UserRole, UserProgress, AppRole
from .models import (
    User, RefreshToken,
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, REFRESH_TOKEN_EXPIRE_DAYS
)
from .schemas import Token, TokenData, UserCreate

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    # Tokens

    def access_token_for(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Signed access token carrying the user's id, email and roles."""
        expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
        claims = {
            "sub": user.email,
            "user_id": user.id,
            "roles": user.role_names,
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)

    def create_refresh_token(self, user_id: str, user_agent: str = None, ip_address: str = None) -> RefreshToken:
        """Create and store a new refresh token."""
        db_token = RefreshToken(
            token=RefreshToken.generate_token(),
            user_id=user_id,
            expires_at=datetime.now(UTC) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
            user_agent=user_agent,
            ip_address=ip_address,
        )
        self.db.add(db_token)
        self.db.commit()
        self.db.refresh(db_token)
        return db_token

    def issue_tokens(self, user: User, user_agent: str = None, ip_address: str = None) -> Token:
        refresh_token = self.create_refresh_token(user.id, user_agent=user_agent, ip_address=ip_address)
        return Token(access_token=self.access_token_for(user), refresh_token=refresh_token.token)

    def verify_token(self, token: str) -> TokenData:
        """Decode an access token; refresh tokens and tampered tokens are refused."""
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise _credentials_error()
        if payload.get("type") != "access" or payload.get("user_id") is None:
            raise _credentials_error()
        return TokenData(email=payload.get("sub"), user_id=payload["user_id"], roles=payload.get("roles", []))

    def refresh_tokens(self, refresh_token: str) -> Token:
        """Exchange a refresh token for a new pair; the old refresh token is revoked."""
        db_token = self.db.query(RefreshToken).filter(
            RefreshToken.token == refresh_token,
            RefreshToken.revoked == False,  # noqa: E712
        ).first()
        if not db_token or db_token.is_expired():
            raise _credentials_error("Invalid or expired refresh token")

        user = self.db.query(User).filter(User.id == db_token.user_id).first()
        if not user or not user.is_active:
            raise _credentials_error("User not found or inactive")

        db_token.revoked = True
        self.db.commit()
        return self.issue_tokens(user, user_agent=db_token.user_agent, ip_address=db_token.ip_address)

    def revoke_refresh_token(self, token: str) -> None:
        db_token = self.db.query(RefreshToken).filter(RefreshToken.token == token).first()
        if db_token:
            db_token.revoked = True
            self.db.commit()

    # Accounts

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, else None; stamps ``last_login``."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not user.verify_password(password):
            return None
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
        user.last_login = datetime.now(UTC)
        self.db.commit()
        return user

    def register_user(self, user_data: UserCreate) -> User:
        """Create the account with its profile, role and an empty progress row."""
        if self.db.query(User).filter(User.email == user_data.email).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

        user = User(email=user_data.email)
        user.set_password(user_data.password)
        user.profile = Profile(display_name=user_data.display_name, age_bracket=user_data.age_bracket)
        user.roles = [UserRole(role=user_data.role)]
        user.progress = UserProgress(xp=0, level=1, coins=0, lessons_completed=0, projects_completed=0)

        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Registered {user_data.role.value} account {user.id}")
        return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to its user."""
    token_data = AuthService(db).verify_token(token)
    user = db.query(User).filter(User.id == token_data.user_id).first()
    if user is None:
        raise _credentials_error()
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


def require_role(*roles: AppRole):
    """Dependency factory admitting users holding any of ``roles`` (admins always pass)."""
    allowed = {role.value for role in roles} | {AppRole.admin.value}

    def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not allowed.intersection(current_user.role_names):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role for this action"
            )
        return current_user

    return checker
