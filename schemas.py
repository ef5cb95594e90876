import json
from typing import Any

from pydantic import BaseModel

from errors import BadRequest


def _lookup(payload: dict[str, Any], field: str) -> Any:
    # top level only: 'title' first, then 'Title'
    value = payload.get(field)
    if value is None:
        value = payload.get(field.capitalize())
    return value


def _as_text(field: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise BadRequest(f'Field {field} must be a string.')
    if isinstance(value, bool):
        return str(value)
    return value if isinstance(value, str) else str(value)


def _as_year(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise BadRequest('Field year must be an integer.')
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise BadRequest('Field year must be an integer.')


class Game(BaseModel):
    id: int
    title: str
    upc: str
    data: str | None = None
    year: int | None = None
    publisher: str | None = None

    @classmethod
    def from_row(cls, row) -> 'Game':
        return cls(
            id=row.Id,
            title=row.Title,
            upc=row.Upc,
            data=row.Data,
            year=row.Year,
            publisher=row.Publisher
        )


class GamePayload(BaseModel):
    """Request body of POST/PUT /games. ``raw`` is stored untouched in the Data column."""

    raw: str
    title: str | None = None
    upc: str | None = None
    year: int | None = None
    publisher: str | None = None

    @classmethod
    def parse(cls, body: str) -> 'GamePayload':
        if not body or not body.strip():
            raise BadRequest('Request body is required.')

        try:
            payload = json.loads(body)
        except ValueError:
            raise BadRequest('Invalid JSON payload.')

        if not isinstance(payload, dict):
            raise BadRequest('Invalid JSON payload.')

        return cls(
            raw=body,
            title=_as_text('title', _lookup(payload, 'title')),
            upc=_as_text('upc', _lookup(payload, 'upc')),
            year=_as_year(_lookup(payload, 'year')),
            publisher=_as_text('publisher', _lookup(payload, 'publisher'))
        )

    def to_params(self) -> dict[str, Any]:
        return {
            'Title': self.title,
            'Upc': self.upc,
            'Data': self.raw,
            'Year': self.year,
            'Publisher': self.publisher
        }


class Message(BaseModel):
    Msg: str


class ValidationSummary(BaseModel):
    updatedCount: int
    archivedCount: int
    needsReviewCount: int
    timestamp: str
