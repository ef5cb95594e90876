from fastapi import status
from fastapi.requests import Request
from fastapi.responses import JSONResponse


class GamesApiError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_msg = 'Internal server error'

    def __init__(self, msg: str | None = None):
        self.msg = msg or self.default_msg
        super().__init__(self.msg)


class BadRequest(GamesApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_msg = 'Bad request'


class Unauthorized(GamesApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_msg = 'Unauthorized'


class NotFound(GamesApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_msg = 'Not found'


class Conflict(GamesApiError):
    status_code = status.HTTP_409_CONFLICT
    default_msg = 'Conflict'


class Internal(GamesApiError):
    """Store or secret provider failure. The client only ever sees the default message."""

    def __init__(self, detail: str | None = None):
        super().__init__(self.default_msg)
        self.detail = detail


async def games_api_error_handler(request: Request, exc: GamesApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'Msg': exc.msg}
    )
