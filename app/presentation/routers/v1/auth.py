from typing import Annotated, Callable

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.application import authenticate
from app.application.email_verification import (
    ALREADY_VERIFIED_MESSAGE,
    confirm_email_verification,
    request_email_verification,
)
from app.application.password_reset import CredentialResetOrchestrator
from app.application.register_user import (
    complete_registration,
    initiate_registration,
    verify_registration,
)
from app.application.registration_session import RegistrationSessionManager
from app.application.verification import VerificationEngine
from app.domain.entities import AccessClaims, Contact
from app.domain.errors import InvalidCredentials
from app.domain.ports.token_blacklist import TokenBlacklistPort
from app.domain.ports.unit_of_work import UnitOfWorkPort
from app.presentation.dependencies import (
    get_current_claims,
    get_engine,
    get_hash_password,
    get_issue_token,
    get_reset_orchestrator,
    get_sessions,
    get_token_blacklist,
    get_uow,
    get_verify_password,
)
from app.schemas.requests import (
    ContactIn,
    EmailIn,
    EmailVerifyIn,
    PasswordResetIn,
    PasswordVerifyIn,
    RegisterCompleteIn,
    RegisterVerifyIn,
)
from app.schemas.responses import (
    AccountOut,
    ErrorOut,
    MessageOut,
    OkOut,
    RegistrationCompletedOut,
    RegistrationStartedOut,
    RegistrationVerifiedOut,
    ResetCodeVerifiedOut,
    TokenOut,
    VerifiedOut,
)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
    responses={400: {"model": ErrorOut}, 503: {"model": ErrorOut}},
)
security = HTTPBasic()

Engine = Annotated[VerificationEngine, Depends(get_engine)]
Sessions = Annotated[RegistrationSessionManager, Depends(get_sessions)]
UoW = Annotated[UnitOfWorkPort, Depends(get_uow)]
Claims = Annotated[AccessClaims, Depends(get_current_claims)]
Blacklist = Annotated[TokenBlacklistPort, Depends(get_token_blacklist)]
Resets = Annotated[CredentialResetOrchestrator, Depends(get_reset_orchestrator)]


# --- registration -----------------------------------------------------------


@router.post(
    "/register",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=RegistrationStartedOut,
)
async def post_register(body: ContactIn, engine: Engine, sessions: Sessions):
    started = await initiate_registration(engine, sessions, body.to_contact())
    return RegistrationStartedOut(session_id=started.session_id, message=started.message)


# a fresh code comes with a fresh session; the previous session id stops mattering
@router.post(
    "/register/resend-code",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=RegistrationStartedOut,
)
async def post_register_resend_code(body: ContactIn, engine: Engine, sessions: Sessions):
    return await post_register(body, engine, sessions)


@router.post("/register/verify", response_model=RegistrationVerifiedOut)
async def post_register_verify(
    body: RegisterVerifyIn, engine: Engine, sessions: Sessions
):
    await verify_registration(engine, sessions, body.session_id, body.code)
    return RegistrationVerifiedOut(session_id=body.session_id)


@router.post(
    "/register/complete",
    status_code=status.HTTP_201_CREATED,
    response_model=RegistrationCompletedOut,
)
async def post_register_complete(
    body: RegisterCompleteIn,
    uow: UoW,
    sessions: Sessions,
    hash_password: Annotated[Callable[..., str], Depends(get_hash_password)],
    issue_token: Annotated[Callable[[str], str], Depends(get_issue_token)],
):
    completed = await complete_registration(
        uow=uow,
        sessions=sessions,
        session_id=body.session_id,
        full_name=body.full_name,
        password=body.password,
        hash_password=hash_password,
        issue_token=issue_token,
    )
    return RegistrationCompletedOut(
        account=AccountOut.from_account(completed.account),
        access_token=completed.access_token,
    )


# --- password reset ---------------------------------------------------------


@router.post(
    "/password/request",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=MessageOut,
)
async def post_password_request(body: ContactIn, resets: Resets):
    requested = await resets.request_code(body.to_contact())
    return MessageOut(message=requested.message, expires_at=requested.expires_at)


@router.post("/password/verify", response_model=ResetCodeVerifiedOut)
async def post_password_verify(body: PasswordVerifyIn, resets: Resets):
    verified = await resets.verify_code(body.to_contact(), body.code)
    return ResetCodeVerifiedOut(
        verified=verified.verified,
        reset_token=verified.reset_token,
        expires_at=verified.expires_at,
    )


@router.post("/password/reset", response_model=OkOut)
async def post_password_reset(body: PasswordResetIn, resets: Resets):
    await resets.reset_password(body.to_contact(), body.reset_token, body.new_password)
    return OkOut()


# --- email verification -----------------------------------------------------


@router.post(
    "/email/verify/request",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=MessageOut,
)
async def post_email_verify_request(body: EmailIn, engine: Engine, uow: UoW):
    issued = await request_email_verification(engine, uow, body.to_contact())
    if issued is None:
        return MessageOut(message=ALREADY_VERIFIED_MESSAGE)
    return MessageOut(message=issued.message, expires_at=issued.expires_at)


@router.post("/email/verify", response_model=VerifiedOut)
async def post_email_verify(body: EmailVerifyIn, engine: Engine, uow: UoW):
    await confirm_email_verification(engine, uow, body.to_contact(), body.code)
    return VerifiedOut()


# --- sessions ---------------------------------------------------------------


@router.post("/login", response_model=TokenOut)
async def post_login(
    uow: UoW,
    creds: HTTPBasicCredentials = Depends(security),
    verify_password: Callable[[str, str], bool] = Depends(get_verify_password),
    issue_token: Callable[[str], str] = Depends(get_issue_token),
):
    try:
        contact = Contact.parse(creds.username)
    except ValueError:
        raise InvalidCredentials() from None
    token = await authenticate.login(
        uow, contact, creds.password, verify_password, issue_token
    )
    return TokenOut(access_token=token)


@router.post("/logout", response_model=OkOut)
async def post_logout(claims: Claims, blacklist: Blacklist):
    await authenticate.logout(blacklist, claims)
    return OkOut()


@router.get("/me", response_model=AccountOut)
async def get_me(claims: Claims, uow: UoW, blacklist: Blacklist):
    account = await authenticate.resolve_account(uow, blacklist, claims)
    return AccountOut.from_account(account)
