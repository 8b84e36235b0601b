"""Helpers for the signed-cookie client session."""

from uuid import UUID, uuid4

from fastapi import Request

from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.users import UserRecord
from calorie_tracker.errors import AuthError, NotFoundError

SESSION_ID_KEY = "session_id"
USER_ID_KEY = "user_id"


def get_or_create_session_id(request: Request) -> str:
    """Return the server-issued session id, issuing one if absent."""
    session_id = request.session.get(SESSION_ID_KEY)
    if not isinstance(session_id, str) or not session_id:
        session_id = uuid4().hex
        request.session[SESSION_ID_KEY] = session_id
    return session_id


def get_session_id(request: Request) -> str | None:
    """Return the current session id without creating one."""
    session_id = request.session.get(SESSION_ID_KEY)
    return session_id if isinstance(session_id, str) and session_id else None


def sign_in(request: Request, user: UserRecord) -> None:
    """Bind a user to the current session."""
    get_or_create_session_id(request)
    request.session[USER_ID_KEY] = str(user.id)


def destroy_session(request: Request) -> None:
    """Drop the session's history and all its cookie state."""
    container: AppContainer = request.app.state.container
    container.history_service.clear_history(get_session_id(request))
    request.session.clear()


def current_user(request: Request) -> UserRecord | None:
    """Return the signed-in user, if any."""
    raw_user_id = request.session.get(USER_ID_KEY)
    if not raw_user_id:
        return None
    container: AppContainer = request.app.state.container
    try:
        return container.user_service.get_user(UUID(str(raw_user_id)))
    except (ValueError, NotFoundError):
        request.session.pop(USER_ID_KEY, None)
        return None


async def require_user(request: Request) -> UserRecord:
    """Ensure the session is authenticated and return the user."""
    user = current_user(request)
    if user is None:
        raise AuthError("Authentication required")
    return user
