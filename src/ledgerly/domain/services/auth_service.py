"""Authentication service for registration, login and JWT token generation."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ledgerly.core.config import get_settings
from ledgerly.core.exceptions import BusinessRuleError, ConflictError
from ledgerly.core.logging import get_logger
from ledgerly.domain.services.category_service import CategoryService
from ledgerly.infrastructure.database.models import Business, User

logger = get_logger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthService:
    """Service for user authentication and business ownership."""

    def __init__(self, db: Session):
        """Initialize auth service with database session."""
        self.db = db

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Hash a password for storing."""
        return pwd_context.hash(password)

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate a user by email and password."""
        user = self.get_user_by_email(email)
        if not user:
            return None
        if not self.verify_password(password, user.hashed_password):
            return None
        if not user.is_active:
            return None
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def register(
        self,
        email: str,
        password: str,
        full_name: str,
        business_name: Optional[str] = None,
        business_type: Optional[str] = None,
        country_code: Optional[str] = None,
    ) -> User:
        """
        Create a business with its owner and seed the default categories.

        Raises:
            ConflictError: The email is already registered
        """
        email = email.strip().lower()
        if self.get_user_by_email(email):
            raise ConflictError("Email already registered")

        settings = get_settings()
        business = Business(
            name=business_name or full_name,
            business_type=business_type,
            vat_rate=settings.default_vat_rate,
            default_currency=settings.default_currency,
            email=email,
        )
        self.db.add(business)
        self.db.flush()

        user = User(
            email=email,
            full_name=full_name,
            hashed_password=self.get_password_hash(password),
            business_id=business.id,
            country_code=country_code,
        )
        self.db.add(user)
        self.db.commit()

        CategoryService(self.db).ensure_defaults(business.id)
        self.db.refresh(user)
        logger.info("User registered", user_id=user.id, business_id=business.id)
        return user

    def update_profile(self, user: User, full_name: Optional[str] = None, email: Optional[str] = None) -> User:
        """Update name and email, keeping emails unique."""
        if email is not None:
            email = email.strip().lower()
            existing = self.db.query(User).filter(User.email == email, User.id != user.id).first()
            if existing:
                raise ConflictError("Email already in use")
            user.email = email
        if full_name is not None:
            user.full_name = full_name

        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not self.verify_password(current_password, user.hashed_password):
            raise BusinessRuleError("Current password is incorrect")
        user.hashed_password = self.get_password_hash(new_password)
        self.db.commit()
        logger.info("Password changed", user_id=user.id)

    def update_business(self, business: Business, data: dict[str, Any]) -> Business:
        vat_rate = data.get("vat_rate")
        if vat_rate is not None and not (0 <= vat_rate <= 100):
            raise BusinessRuleError("VAT rate must be between 0 and 100")
        if data.get("default_currency"):
            data["default_currency"] = data["default_currency"].upper()
        for field, value in data.items():
            setattr(business, field, value)
        self.db.commit()
        self.db.refresh(business)
        return business

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token."""
        settings = get_settings()
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                minutes=settings.jwt_access_token_expire_minutes
            )

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    @staticmethod
    def decode_access_token(token: str) -> Optional[dict]:
        """Decode and verify JWT access token."""
        settings = get_settings()
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except JWTError:
            return None
