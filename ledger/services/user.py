from typing import Optional
import uuid
from datetime import datetime, timedelta

import jwt
from loguru import logger
from sqlmodel import Session, select
from fastapi import HTTPException, status

from ledger.core.config import settings
from ledger.core.concurrency import compare_and_swap, load_live
from ledger.core.errors import BusinessRuleError
from ledger.core.pagination import ListParams, Page, apply_search, apply_sorting, paginate
from ledger.db.schema import User, Role, RevokedToken
from ledger.models.auth import RegisterRequest, Token, TokenAccess, TokenData
from ledger.models.user import CurrentUser, UserCreate, UserRead, UserUpdate
from .common import ensure_unique, save, soft_delete
from .password import get_password_hash, verify_password


class UserService:
    ALGORITHM = "HS256"
    SORT_FIELDS = ("name", "email", "created_at")

    def __init__(self, session: Session):
        self.session = session

    def _create_jwt(self, subject: str, expires_delta: timedelta, type: str) -> str:
        """Helper to sign JWTs with specific types."""
        to_encode = {
            "sub": str(subject),
            "exp": datetime.utcnow() + expires_delta,
            "type": type,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(to_encode, settings.secret_key, algorithm=self.ALGORITHM)

    def _decode(self, token: str, expected_type: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, settings.secret_key,
                                 algorithms=[self.ALGORITHM])
        except jwt.PyJWTError:
            return None

        if not payload.get("sub") or payload.get("type") != expected_type:
            return None
        return payload

    # --- Lookups ---

    def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        statement = select(User).where(
            User.id == user_id,
            User.deleted_at == None  # noqa: E711
        )
        return self.session.exec(statement).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        statement = select(User).where(
            User.email == email,
            User.deleted_at == None  # noqa: E711
        )
        return self.session.exec(statement).first()

    def _get_role(self, role_id: uuid.UUID) -> Role:
        role = self.session.exec(
            select(Role).where(Role.id == role_id, Role.deleted_at == None)  # noqa: E711
        ).first()
        if not role:
            raise BusinessRuleError("The selected role is invalid.")
        return role

    # --- Authentication ---

    def register(self, data: RegisterRequest) -> User:
        """Creates a self-registered account with the configured default role."""
        ensure_unique(self.session, User, "email", data.email,
                      message="A user with this email already exists.")

        role = self.session.exec(
            select(Role).where(
                Role.name == settings.default_role,
                Role.deleted_at == None  # noqa: E711
            )
        ).first()

        if not role:
            logger.error(f"Default role '{settings.default_role}' is missing")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="System configuration error: default role missing."
            )

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=get_password_hash(data.password),
            role_id=role.id,
            is_active=True,
        )
        user = save(self.session, user, "A user with this email already exists.")
        logger.info(f"Registration successful for {user.email}")
        return user

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Verify email and password hash."""
        user = self.get_user_by_email(email)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def generate_access_token(self, user: User) -> str:
        return self._create_jwt(
            subject=user.id,
            expires_delta=timedelta(
                minutes=settings.access_token_expire_minutes),
            type="access"
        )

    def generate_refresh_token(self, user: User) -> str:
        return self._create_jwt(
            subject=user.id,
            expires_delta=timedelta(
                minutes=settings.refresh_token_expire_minutes),
            type="refresh"
        )

    def generate_tokens(self, user: User) -> Token:
        return Token(
            access_token=self.generate_access_token(user),
            refresh_token=self.generate_refresh_token(user),
            token_type="bearer",
            expires_in=settings.access_token_expire_minutes * 60,
            user=UserRead.model_validate(user),
        )

    def verify_access_token(self, token: str) -> Optional[TokenData]:
        payload = self._decode(token, "access")
        if not payload:
            return None

        try:
            user_id = uuid.UUID(payload["sub"])
        except ValueError:
            return None

        jti = payload.get("jti")
        if jti and self.is_revoked(jti):
            return None

        return TokenData(user_id=user_id, jti=jti)

    def verify_refresh_token(self, token: str) -> Optional[TokenData]:
        payload = self._decode(token, "refresh")
        if not payload:
            return None

        try:
            return TokenData(user_id=uuid.UUID(payload["sub"]), jti=payload.get("jti"))
        except ValueError:
            return None

    def validate_user(self, user_id: uuid.UUID) -> Optional[User]:
        """Retrieves user and checks is_active flag."""
        user = self.get_user_by_id(user_id)
        if not user or not user.is_active:
            return None
        return user

    def refresh_session(self, refresh_token: str) -> TokenAccess:
        """
        Exchange a valid refresh token for a new access token.
        Strictly validates the user state before issuing.
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        # 1. Verify Token Signature & Type
        token_data = self.verify_refresh_token(refresh_token)
        if not token_data:
            raise credentials_exception

        # 2. Verify User Exists & Is Active
        user = self.validate_user(token_data.user_id)
        if not user:
            raise credentials_exception

        # 3. Issue New Access Token
        return TokenAccess(
            access_token=self.generate_access_token(user),
            expires_in=settings.access_token_expire_minutes * 60,
        )

    def is_revoked(self, jti: str) -> bool:
        statement = select(RevokedToken).where(RevokedToken.jti == jti)
        return self.session.exec(statement).first() is not None

    def revoke_token(self, token: str) -> None:
        """Blacklists an access token until it would have expired anyway."""
        payload = self._decode(token, "access")
        if not payload or not payload.get("jti"):
            return
        if self.is_revoked(payload["jti"]):
            return

        revoked = RevokedToken(
            jti=payload["jti"],
            expires_at=datetime.utcfromtimestamp(payload["exp"]),
        )
        try:
            self.session.add(revoked)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Token revoked for user {payload['sub']}")

    def describe(self, user: User) -> CurrentUser:
        view = CurrentUser.model_validate(user)
        view.permissions = list(user.role.permissions) if user.role else []
        return view

    # --- Administration ---

    def list_users(
        self,
        params: ListParams,
        role_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = None,
    ) -> Page:
        statement = select(User).where(User.deleted_at == None)  # noqa: E711

        statement = apply_search(statement, params.search, [User.name, User.email])
        if role_id:
            statement = statement.where(User.role_id == role_id)
        if is_active is not None:
            statement = statement.where(User.is_active == is_active)

        statement = apply_sorting(statement, User, params, self.SORT_FIELDS)
        return paginate(self.session, statement, params, UserRead.model_validate)

    def get_user(self, user_id: uuid.UUID) -> User:
        return load_live(self.session, User, user_id)

    def create_user(self, data: UserCreate) -> User:
        ensure_unique(self.session, User, "email", data.email,
                      message="A user with this email already exists.")
        self._get_role(data.role_id)

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=get_password_hash(data.password),
            role_id=data.role_id,
            is_active=data.is_active,
        )
        return save(self.session, user, "A user with this email already exists.")

    def update_user(self, user_id: uuid.UUID, data: UserUpdate) -> User:
        changes = data.model_dump(exclude_unset=True, exclude={"version"})

        if changes.get("email") is not None:
            ensure_unique(self.session, User, "email", changes["email"], exclude_id=user_id,
                          message="A user with this email already exists.")
        if changes.get("role_id") is not None:
            self._get_role(changes["role_id"])

        password = changes.pop("password", None)
        if password:
            changes["hashed_password"] = get_password_hash(password)

        # Required columns cannot be cleared
        changes = {k: v for k, v in changes.items() if v is not None}

        return compare_and_swap(
            self.session, User, user_id, data.version,
            lambda current: changes,
            read_model=UserRead,
        )

    def delete_user(self, user_id: uuid.UUID, actor: User) -> User:
        if user_id == actor.id:
            raise BusinessRuleError("You cannot delete your own account.")

        user = load_live(self.session, User, user_id)
        soft_delete(self.session, user)
        return user
