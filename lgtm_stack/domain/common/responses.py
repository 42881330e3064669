from http import HTTPStatus
from typing import Any

from fastapi.responses import JSONResponse

_PROBLEM_TYPES = {
    HTTPStatus.NOT_FOUND: 'https://tools.ietf.org/html/rfc9110#section-15.5.5',
    HTTPStatus.INTERNAL_SERVER_ERROR: (
        'https://tools.ietf.org/html/rfc9110#section-15.6.1'
    ),
}
_DEFAULT_TITLE = 'An error occurred while processing your request.'


class ProblemResponse(JSONResponse):
    """RFC 9457 problem details response."""

    media_type = 'application/problem+json'

    def __init__(
        self,
        detail: str | None = None,
        status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
        title: str | None = None,
        **extensions: Any,
    ) -> None:
        status = HTTPStatus(status_code)
        if title is None:
            title = (
                _DEFAULT_TITLE
                if status >= HTTPStatus.INTERNAL_SERVER_ERROR
                else status.phrase
            )

        body: dict[str, Any] = {
            'type': _PROBLEM_TYPES.get(status, 'about:blank'),
            'title': title,
            'status': status.value,
        }
        if detail:
            body['detail'] = detail

        body.update(extensions)
        super().__init__(content=body, status_code=status.value)
