from fastapi import Header, Request, Response

from app.services.session_store import StudySession, session_store

SESSION_HEADER = "X-Session-ID"


def get_study_session(
    request: Request,
    response: Response,
    x_session_id: str | None = Header(default=None, alias=SESSION_HEADER),
) -> StudySession:
    """Resolve the caller's study session, issuing a new one when needed.

    The id is echoed back in the response header so the client can send it
    with the next request. It is also kept on ``request.state`` so error
    responses carry it too.
    """
    session = session_store.get_or_create(x_session_id)
    request.state.session_id = session.session_id
    response.headers[SESSION_HEADER] = session.session_id
    return session
