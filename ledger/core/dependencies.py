from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from ledger.db.core import get_session
from ledger.db.schema import User
from ledger.services.user import UserService
from ledger.services.role import RoleService
from ledger.services.supplier import SupplierService
from ledger.services.product import ProductService
from ledger.services.rate import RateService
from ledger.services.collection import CollectionService
from ledger.services.payment import PaymentService
from ledger.services.report import ReportService
from ledger.services.audit import AuditService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_user_service(session: Session = Depends(get_session)) -> UserService:
    """Creates a UserService instance using the active DB session."""
    return UserService(session)


def get_role_service(session: Session = Depends(get_session)) -> RoleService:
    return RoleService(session=session)


def get_supplier_service(session: Session = Depends(get_session)) -> SupplierService:
    return SupplierService(session=session)


def get_product_service(session: Session = Depends(get_session)) -> ProductService:
    return ProductService(session=session)


def get_rate_service(session: Session = Depends(get_session)) -> RateService:
    return RateService(session=session)


def get_collection_service(session: Session = Depends(get_session)) -> CollectionService:
    return CollectionService(session=session)


def get_payment_service(session: Session = Depends(get_session)) -> PaymentService:
    return PaymentService(session=session)


def get_report_service(session: Session = Depends(get_session)) -> ReportService:
    return ReportService(session=session)


def get_audit_service(session: Session = Depends(get_session)) -> AuditService:
    return AuditService(session=session)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: UserService = Depends(get_user_service)
) -> User:
    """
    Validates the JWT token and retrieves the user.
    This is the gatekeeper for protected routes.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    # Signature, expiry, type and revocation
    token_data = service.verify_access_token(token)
    if not token_data:
        raise credentials_exception

    user = service.get_user_by_id(token_data.user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Please contact support."
        )

    return user


def require_permission(permission: str):
    """
    Builds a dependency that returns the current user when their role
    grants `permission`, and answers 403 otherwise.
    """
    def checker(current_user: User = Depends(get_current_user)) -> User:
        granted = current_user.role.permissions if current_user.role else []
        if permission not in granted:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action."
            )
        return current_user

    return checker
