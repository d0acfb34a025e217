import uuid
from flask import Response, g, request

REQUEST_ID_HEADER = "X-Request-ID"


def init_request_id() -> str:
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    g.request_id = rid
    return rid


def current_request_id() -> str | None:
    return getattr(g, "request_id", None)


def echo_request_id(response: Response) -> Response:
    """Mirror the request id back so clients can quote it in bug reports."""
    rid = current_request_id()
    if rid:
        response.headers[REQUEST_ID_HEADER] = rid
    return response
