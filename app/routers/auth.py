# app/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.core.auth import find_client_session, get_client_session, get_registry
from app.core.config import get_settings
from app.schemas.auth import AuthState, Credentials, OAuthStart
from app.services.client_session import ClientSession, SessionRegistry

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["Auth"])

SUPPORTED_OAUTH_PROVIDERS = {"google"}


@router.get("/state", response_model=AuthState)
async def read_auth_state(client: ClientSession = Depends(get_client_session)):
    """
    Current identity of this client session.

    `resolving` stays true until Supabase reported for the first time.
    """
    return client.auth_state()


@router.post("/sign-in", response_model=AuthState)
async def sign_in(
    payload: Credentials,
    client: ClientSession = Depends(get_client_session),
):
    """
    Email/password sign-in.

    Errors:
      - 400 with the provider's message (bad credentials, network)
    """
    await client.auth.sign_in(payload.email, payload.password)
    return client.auth_state()


@router.post("/sign-up", response_model=AuthState)
async def sign_up(
    payload: Credentials,
    client: ClientSession = Depends(get_client_session),
):
    """
    Create an account; display name defaults to the email's local part.
    """
    await client.auth.sign_up(payload.email, payload.password)
    return client.auth_state()


@router.post("/oauth/{provider}", response_model=OAuthStart)
async def start_oauth(
    provider: str,
    client: ClientSession = Depends(get_client_session),
):
    """
    Start a federated sign-in; the client opens the returned URL.
    """
    if provider not in SUPPORTED_OAUTH_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unknown sign-in provider",
        )
    url = await client.auth.start_oauth(provider)
    return OAuthStart(provider=provider, url=url)


@router.get("/callback", response_model=AuthState)
async def oauth_callback(
    code: str,
    client: ClientSession = Depends(get_client_session),
):
    """
    OAuth redirect target: exchange the authorization code for a session.
    """
    await client.auth.complete_oauth(code)
    return client.auth_state()


@router.post("/sign-out", response_model=AuthState)
async def sign_out(client: ClientSession = Depends(get_client_session)):
    await client.auth.sign_out()
    return client.auth_state()


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def discard_session(
    response: Response,
    client: ClientSession | None = Depends(find_client_session),
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Tear down this client session (the page went away).

    Pending profile loads are ignored from here on. Unknown sessions
    are simply forgotten.
    """
    if client is not None:
        await registry.close(client.sid)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
