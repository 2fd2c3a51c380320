from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import logging

from ..models.user import User, RefreshToken
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, AuthenticationError, UserRole
)
from ..schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse
from .notifications import NotificationDispatcher, welcome_email

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier

    def register_user(self, user_data: UserRegister) -> User:
        """Register a new user together with their doctor or patient profile."""
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        new_user = User(
            full_name=user_data.full_name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            phone_number=user_data.phone_number,
            is_active=True,
        )
        self.db.add(new_user)
        self.db.flush()

        # Profile details are filled in later by the user
        if user_data.role == UserRole.DOCTOR:
            self.db.add(Doctor(user_id=new_user.id))
        elif user_data.role == UserRole.PATIENT:
            self.db.add(Patient(user_id=new_user.id))

        self.db.commit()
        self.db.refresh(new_user)
        logger.info(f"Registered {new_user.role.value} user {new_user.id}")

        if self.notifier is not None:
            self.notifier.emit(welcome_email(new_user.email, new_user.full_name))

        return new_user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return tokens."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user.last_login = datetime.utcnow()

        tokens = create_token_pair(user.id, user.email, user.role)
        self._store_refresh_token(user.id, tokens.refresh_token)

        self.db.commit()

        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.model_validate(user)
        )

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != "refresh":
            raise AuthenticationError("Invalid refresh token")

        # Check if refresh token exists in database
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > datetime.utcnow()
        ).first()

        if not stored_token:
            raise AuthenticationError("Invalid or expired refresh token")

        user = self.db.query(User).filter(
            User.id == token_payload.sub
        ).first()

        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        new_tokens = create_token_pair(user.id, user.email, user.role)

        # Revoke old refresh token and store new one
        stored_token.is_revoked = True
        self._store_refresh_token(user.id, new_tokens.refresh_token)

        self.db.commit()

        return TokenResponse(
            access_token=new_tokens.access_token,
            refresh_token=new_tokens.refresh_token,
            token_type=new_tokens.token_type,
            expires_in=new_tokens.expires_in,
            user=UserResponse.model_validate(user)
        )

    def logout_user(self, refresh_token: str) -> bool:
        """Logout user by revoking refresh token."""
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash
        ).first()

        if not stored_token:
            return False

        stored_token.is_revoked = True
        self.db.commit()
        return True

    def _store_refresh_token(self, user_id: int, refresh_token: str):
        """Store refresh token in database, revoking earlier ones."""
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()

        token_payload = verify_token(refresh_token)
        expires_at = (
            datetime.utcfromtimestamp(token_payload.exp)
            if token_payload and token_payload.exp
            else datetime.utcnow() + timedelta(days=7)
        )

        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id
        ).update({"is_revoked": True})

        self.db.add(RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at
        ))
