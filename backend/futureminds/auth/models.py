"""Account models for the application."""
import os
import secrets
import string
import uuid
from datetime import datetime, UTC

import bcrypt
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from futureminds.database import Base

# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "futureminds-dev-secret-change-me")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
REFRESH_TOKEN_EXPIRE_DAYS = 7


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

    profile = relationship("futureminds.models.user.Profile", back_populates="user", uselist=False,
                           cascade="all, delete-orphan")
    roles = relationship("futureminds.models.user.UserRole", back_populates="user", cascade="all, delete-orphan")
    progress = relationship("futureminds.models.progress.UserProgress", back_populates="user", uselist=False,
                            cascade="all, delete-orphan")
    refresh_tokens = relationship("futureminds.auth.models.RefreshToken", back_populates="user",
                                  cascade="all, delete-orphan")

    def set_password(self, password: str) -> None:
        """Hash and set the user's password."""
        salt = bcrypt.gensalt()
        self.hashed_password = bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def verify_password(self, password: str) -> bool:
        """Verify the provided password against the stored hash."""
        return bcrypt.checkpw(password.encode('utf-8'), self.hashed_password.encode('utf-8'))

    @property
    def role_names(self) -> list[str]:
        return sorted(r.role.value for r in self.roles)

    def has_role(self, *names: str) -> bool:
        return any(name in self.role_names for name in names)

    @property
    def display_name(self) -> str:
        return self.profile.display_name if self.profile else self.email


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    token = Column(String(255), unique=True, index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))
    revoked = Column(Boolean, default=False)
    user_agent = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)

    user = relationship("futureminds.auth.models.User", back_populates="refresh_tokens")

    @classmethod
    def generate_token(cls, length: int = 64) -> str:
        """Generate a secure random token."""
        alphabet = string.ascii_letters + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    def is_expired(self) -> bool:
        """Check if the refresh token has expired."""
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return datetime.now(UTC) > expires_at
