"""Authentication service for handling user authentication and token management."""
import logging
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, REFRESH_TOKEN_EXPIRE_DAYS
from ..database import get_db
from ..models import User, UserRole, RefreshToken, LoginAttempt
from ..models.common import utcnow
from ..navigation import resolve_redirect
from .models import Token, TokenData, UserCreate

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

PASSWORD_RESET_EXPIRE_MINUTES = 30
MAX_FAILED_LOGINS = 5
LOCKOUT_MINUTES = 30


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a new access token."""
        to_encode = data.copy()
        if expires_delta:
            expire = utcnow() + expires_delta
        else:
            expire = utcnow() + timedelta(minutes=15)
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    def create_refresh_token(self, user_id: str, user_agent: str = None, ip_address: str = None) -> RefreshToken:
        """Create and store a new refresh token."""
        db_token = RefreshToken(
            token=RefreshToken.generate_token(),
            user_id=user_id,
            expires_at=utcnow() + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
            user_agent=user_agent,
            ip_address=ip_address
        )
        self.db.add(db_token)
        self.db.commit()
        self.db.refresh(db_token)
        return db_token

    def issue_tokens(self, user: User, user_agent: str = None, ip_address: str = None) -> Token:
        """Access + refresh token pair for a signed-in user."""
        access_token = self.create_access_token(
            data={"sub": user.email, "user_id": user.id, "role": user.role.value},
            expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        refresh_token = self.create_refresh_token(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )
        return Token(access_token=access_token, refresh_token=refresh_token.token)

    def verify_token(self, token: str) -> TokenData:
        """Verify and decode a JWT access token."""
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise credentials_exception
        email = payload.get("sub")
        user_id = payload.get("user_id")
        if email is None or user_id is None or payload.get("type") != "access":
            raise credentials_exception
        return TokenData(email=email, user_id=user_id, role=payload.get("role"))

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate a user with email and password."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            return None
        if user.is_locked():
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is temporarily locked due to too many failed login attempts"
            )
        if not user.verify_password(password):
            return None
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Inactive user"
            )
        return user

    def register_user(self, user_data: UserCreate) -> User:
        """Register a new user together with its role profile."""
        if self.db.query(User).filter(User.email == user_data.email).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        user = User(
            email=user_data.email,
            display_name=user_data.display_name,
            role=user_data.role
        )
        user.set_password(user_data.password)

        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Registered {user.role.value} {user.email}")
        return user

    def ensure_profile(
        self,
        email: str,
        role: UserRole,
        display_name: str = None,
        photo_url: str = None,
    ) -> User:
        """Federated sign-in: create the profile on first sign-in, keep an existing one as is."""
        user = self.db.query(User).filter(User.email == email).first()
        if user:
            return user

        user = User(
            email=email,
            display_name=display_name,
            photo_url=photo_url,
            role=role,
            is_active=True,
            is_verified=True,
        )
        # Federated accounts never sign in with a password
        user.set_password(secrets.token_urlsafe(24))
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created {role.value} profile for federated user {email}")
        return user

    def refresh_tokens(self, refresh_token: str) -> Token:
        """Refresh access token using a valid refresh token."""
        db_token = self.db.query(RefreshToken).filter(
            RefreshToken.token == refresh_token,
            RefreshToken.revoked == False,  # noqa: E712
            RefreshToken.expires_at > utcnow()
        ).first()

        if not db_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token"
            )

        user = self.db.query(User).filter(User.id == db_token.user_id).first()
        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive"
            )

        access_token = self.create_access_token(
            data={"sub": user.email, "user_id": user.id, "role": user.role.value},
            expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        return Token(access_token=access_token, refresh_token=db_token.token)

    def revoke_refresh_token(self, token: str) -> None:
        """Revoke a refresh token."""
        db_token = self.db.query(RefreshToken).filter(RefreshToken.token == token).first()
        if db_token:
            db_token.revoked = True
            self.db.commit()

    def record_login_attempt(self, email: str, ip_address: str, user_agent: str, success: bool) -> None:
        """Record a login attempt and lock the account after repeated failures."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            return

        self.db.add(LoginAttempt(
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
            success=success
        ))

        if success:
            user.failed_login_attempts = 0
            user.locked_until = None
            user.last_login = utcnow()
        else:
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            if user.failed_login_attempts >= MAX_FAILED_LOGINS:
                user.locked_until = utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
                logger.warning(f"Locked account {email} after {user.failed_login_attempts} failed logins")

        self.db.commit()

    def create_password_reset_token(self, email: str) -> Optional[str]:
        """Short-lived reset token, or None if no such account exists."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            return None
        expire = utcnow() + timedelta(minutes=PASSWORD_RESET_EXPIRE_MINUTES)
        return jwt.encode({"sub": user.email, "exp": expire, "type": "reset"}, SECRET_KEY, algorithm=ALGORITHM)

    def reset_password(self, token: str, new_password: str) -> User:
        invalid = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid reset token")
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise invalid
        if payload.get("type") != "reset":
            raise invalid
        user = self.db.query(User).filter(User.email == payload.get("sub")).first()
        if not user:
            raise invalid
        user.set_password(new_password)
        user.failed_login_attempts = 0
        user.locked_until = None
        self.db.commit()
        return user


def _user_from_token(token: str, db: Session) -> User:
    token_data = AuthService(db).verify_token(token)
    user = db.query(User).filter(User.id == token_data.user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Dependency to get the current user from the JWT token."""
    return _user_from_token(token, db)


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Dependency to get the current active user."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Current user, or None when the request is anonymous or the token is bad."""
    if not token:
        return None
    try:
        return _user_from_token(token, db)
    except HTTPException:
        return None


def role_guard(request: Request, user: Optional[User] = Depends(get_optional_user)) -> User:
    """Keep users inside their own area; anyone else is redirected."""
    target = resolve_redirect(request.url.path, user)
    if target is not None:
        raise HTTPException(status_code=status.HTTP_307_TEMPORARY_REDIRECT, headers={"Location": target})
    return user
