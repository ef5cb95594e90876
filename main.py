import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Request
import uvicorn

from auth import require_api_key
from config import configure_logging, get_settings
from errors import BadRequest, GamesApiError, NotFound, games_api_error_handler
from schemas import Game, GamePayload, Message, ValidationSummary
from sql_db_processor import SqlRepository, get_repository
from validation import Clock, utc_now, validate_games

logger = logging.getLogger(__name__)

Repository = Annotated[SqlRepository, Depends(get_repository)]
ApiKey = Depends(require_api_key)


def get_clock() -> Clock:
    return utc_now


async def raw_body(request: Request) -> str:
    return (await request.body()).decode('utf-8', errors='replace')


router = APIRouter()


@router.get('/games', response_model=list[Game])
def get_games(repository: Repository):
    logger.info('Processing GET /games')
    games = repository.list_games()
    logger.info('Returned %d games', len(games))
    return games


@router.get('/games/count', response_model=int)
def count_games(repository: Repository):
    logger.info('Processing GET /games/count')
    return repository.count_games()


@router.get('/games/{upc}', response_model=Game)
def get_game_by_upc(upc: str, repository: Repository):
    logger.info('Processing GET /games/%s', upc)

    game = repository.find_game(upc)
    if game is None:
        raise NotFound(f'Game with UPC {upc} not found')
    return game


@router.post('/games', response_model=Message, dependencies=[ApiKey])
def add_game(body: Annotated[str, Depends(raw_body)], repository: Repository):
    logger.info('Processing POST /games')

    game = GamePayload.parse(body)
    if not game.title or not game.title.strip() or not game.upc or not game.upc.strip():
        raise BadRequest('Both title and upc are required.')

    repository.add_game(game)
    logger.info('Inserted game with UPC %s', game.upc)
    return Message(Msg='Item added successfully')


@router.put('/games', response_model=Message, dependencies=[ApiKey])
def update_game(body: Annotated[str, Depends(raw_body)], repository: Repository):
    logger.info('Processing PUT /games')

    game = GamePayload.parse(body)
    if not game.upc or not game.upc.strip():
        raise BadRequest('UPC is required to update a game.')

    if repository.update_game(game) == 0:
        raise NotFound(f'Game with UPC {game.upc} not found.')

    logger.info('Updated game with UPC %s', game.upc)
    return Message(Msg='Game updated successfully')


@router.delete('/games/{upc}', response_model=Message, dependencies=[ApiKey])
def delete_game(upc: str, repository: Repository):
    logger.info('Processing DELETE /games/%s', upc)

    if repository.delete_game(upc) == 0:
        raise NotFound(f'Game with UPC {upc} not found')

    logger.info('Deleted game with UPC %s', upc)
    return Message(Msg=f'Game with UPC {upc} deleted successfully')


@router.patch('/games/validate', response_model=ValidationSummary, dependencies=[ApiKey])
def validate(repository: Repository, clock: Annotated[Clock, Depends(get_clock)]):
    logger.info('Processing PATCH /games/validate')
    return validate_games(repository, clock)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    api = FastAPI(title='Games API')
    api.include_router(router, prefix=settings.base_path)
    api.add_exception_handler(GamesApiError, games_api_error_handler)
    return api


app = create_app()


if __name__ == '__main__':
    uvicorn.run(app, host=get_settings().host, port=get_settings().port)
