"""Authentication API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.database import get_db
from forum_api.pipeline import Pending
from forum_api.schemas.envelope import Envelope
from forum_api.schemas.user import AuthResponse, CreateAccountRequest, LoginRequest, SessionUser
from forum_api.services import accounts
from forum_api.utils.security import OptionalIdentity

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("", response_model=Envelope[AuthResponse])
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Envelope[AuthResponse]:
    """Authenticate a user and return a JWT valid for two weeks.

    Unknown usernames and wrong passwords get the same error, tagged with
    the password field.
    """
    validated = await Pending.of(credentials).attach_db(db).validate(accounts.validate_login)
    return Envelope(data=await accounts.login(validated))


@router.post("/sign-up", response_model=Envelope[AuthResponse], status_code=201)
async def create_account(
    account_data: CreateAccountRequest,
    db: AsyncSession = Depends(get_db),
) -> Envelope[AuthResponse]:
    """Register a new account and sign it in.

    The password is hashed with bcrypt before storage.
    """
    validated = await Pending.of(account_data).attach_db(db).validate(accounts.validate_new_account)
    return Envelope(data=await accounts.create_account(validated))


@router.get("", response_model=Envelope[SessionUser])
async def verify(identity: OptionalIdentity) -> Envelope[SessionUser]:
    """Report who the bearer token belongs to.

    Anonymous callers get ``success: false`` with no data rather than an error.
    """
    if identity is None:
        return Envelope(success=False, data=None)
    return Envelope(data=SessionUser(id=identity.id, username=identity.username))
