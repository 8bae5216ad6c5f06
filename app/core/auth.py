# app/core/auth.py
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from app.core.config import get_settings
from app.services.client_session import ClientSession, SessionRegistry

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => a missing Authorization header is fine,
#   the session token may come from the cookie instead (or not at all).
bearer_scheme = HTTPBearer(auto_error=False)


def issue_session_token(sid: str) -> str:
    """
    Sign a client session id.

    The token only proves the id was issued by this server; it carries
    no user data (the Supabase session stays server side).
    """
    return jwt.encode(
        {"sid": sid},
        settings.SESSION_SECRET,
        algorithm=settings.SESSION_TOKEN_ALG,
    )


def decode_session_token(token: str) -> str | None:
    """
    Verify a session token and return its session id.

    Returns:
        The session id, or None if the token is invalid.
    """
    try:
        claims = jwt.decode(
            token,
            settings.SESSION_SECRET,
            algorithms=[settings.SESSION_TOKEN_ALG],
        )
    except JWTError:
        return None
    sid = claims.get("sid")
    return sid if isinstance(sid, str) else None


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def find_client_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    registry: SessionRegistry = Depends(get_registry),
) -> ClientSession | None:
    """
    Look up the caller's client session without creating one.

    The session token comes from the Authorization header, else the cookie.
    Returns None for a missing, invalid, unknown or expired token.
    """
    token = (
        credentials.credentials
        if credentials is not None
        else request.cookies.get(settings.SESSION_COOKIE_NAME)
    )
    sid = decode_session_token(token) if token else None
    return registry.get(sid) if sid else None


async def get_client_session(
    request: Request,
    client: ClientSession | None = Depends(find_client_session),
    registry: SessionRegistry = Depends(get_registry),
) -> ClientSession:
    """
    Resolve the caller's client session, opening a fresh one if needed.

    The new session's token is handed out by session_token_middleware,
    so it also reaches the client when the request ends in an error.
    """
    if client is None:
        client = await registry.open()
        request.state.session_token = issue_session_token(client.sid)
    return client


def attach_session_token(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
    )
    response.headers["X-Session-Token"] = token


async def session_token_middleware(request: Request, call_next):
    """Hand a newly opened session's token back, whatever the status code."""
    response = await call_next(request)
    token = getattr(request.state, "session_token", None)
    if token is not None:
        attach_session_token(response, token)
    return response


def require_identity(
    client: ClientSession | None = Depends(find_client_session),
) -> ClientSession:
    """
    Enforce a signed-in user.

    Never opens a session: without a known session there is nobody
    signed in.

    Raises:
        HTTPException(401): if there is no session or it has no identity.
    """
    if client is None or client.identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return client
