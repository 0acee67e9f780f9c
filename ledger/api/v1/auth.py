from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from loguru import logger

from ledger.core.audit import record_audit
from ledger.core.dependencies import get_user_service, get_current_user, oauth2_scheme
from ledger.db.schema import AuditAction, User
from ledger.models.auth import RegisterRequest, Token, TokenAccess, TokenRefresh, UserSignin
from ledger.models.common import ApiResponse, ok
from ledger.models.user import CurrentUser
from ledger.services.user import UserService


router = APIRouter()


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[Token],
    summary="Register a new user",
    description="Creates an account with the default role and signs it in."
)
def register(
    user_in: RegisterRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    service: UserService = Depends(get_user_service)
):
    user = service.register(user_in)
    record_audit(background_tasks, request, service.session, user,
                 AuditAction.CREATED, "user", user.id, user_in.model_dump())
    return ok(service.generate_tokens(user), "User registered successfully")


@router.post(
    "/login",
    response_model=ApiResponse[Token],
    status_code=status.HTTP_200_OK,
    summary="Signin to get tokens",
    description="Returns an Access Token (short-lived) and Refresh Token (long-lived)."
)
def login(
    signin_data: UserSignin,
    service: UserService = Depends(get_user_service)
):
    """
    1. Verifies password.
    2. Checks if user is Active.
    3. Issues JWTs.
    """
    user = service.authenticate_user(signin_data.email, signin_data.password)

    if not user:
        # Same answer for unknown email and wrong password
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Please contact support."
        )

    tokens = service.generate_tokens(user)

    logger.info(f"User logged in: {user.id}")

    return ok(tokens, "Login successful")


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenAccess],
    status_code=status.HTTP_200_OK,
    summary="Refresh Session",
    description="Exchanges a valid Refresh Token for a new Access Token."
)
def refresh_token(
    refresh_data: TokenRefresh,
    service: UserService = Depends(get_user_service)
):
    return ok(service.refresh_session(refresh_data.refresh_token), "Token refreshed successfully")


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Logout",
    description="Revokes the access token used for this request."
)
def logout(
    token: str = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    service.revoke_token(token)
    logger.info(f"User logged out: {current_user.id}")
    return ok(message="Logged out successfully")


@router.get(
    "/me",
    response_model=ApiResponse[CurrentUser],
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Returns the profile, role and permissions of the authenticated user."
)
def get_me(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return ok(service.describe(current_user))
