import logging
import struct
from contextlib import contextmanager
from enum import StrEnum
from functools import lru_cache
from typing import Iterator

from sqlalchemy import (Column, Integer, MetaData, Table, Unicode, UnicodeText, create_engine,
                        delete, event, func, insert, select, update)
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from config import Settings, get_settings
from credentials import TokenProvider, get_token_provider
from errors import Conflict, Internal
from schemas import Game, GamePayload

logger = logging.getLogger(__name__)

# pyodbc connection attribute that carries an Entra ID access token
SQL_COPT_SS_ACCESS_TOKEN = 1256


class TableNames(StrEnum):
    GAMES = 'Games'


metadata = MetaData()

games_table = Table(
    TableNames.GAMES, metadata,
    Column('Id', Integer, primary_key=True, autoincrement=True),
    Column('Title', Unicode(200), nullable=False),
    Column('Upc', Unicode(50), nullable=False, unique=True),
    Column('Data', UnicodeText, nullable=True),
    Column('Year', Integer, nullable=True),
    Column('Publisher', Unicode(200), nullable=True),
)


def _access_token_struct(token: str) -> bytes:
    encoded = token.encode('utf-16-le')
    return struct.pack(f'<I{len(encoded)}s', len(encoded), encoded)


def build_connection_url(settings: Settings) -> str | URL:
    if settings.database_url:
        return settings.database_url

    odbc_connect = (
        f'Driver={{{settings.sql_driver}}};'
        f'Server=tcp:{settings.sql_server},1433;'
        f'Database={settings.sql_database};'
        'Encrypt=yes;TrustServerCertificate=no;'
        f'Connection Timeout={settings.sql_connection_timeout};'
    )
    return URL.create('mssql+pyodbc', query={'odbc_connect': odbc_connect})


class SqlConnector:

    def __init__(self, settings: Settings, token_provider: TokenProvider | None = None):
        self.settings = settings
        self.token_provider = token_provider
        self.engine: Engine = create_engine(build_connection_url(settings), poolclass=NullPool)

        if token_provider is not None and self.engine.dialect.name == 'mssql':
            event.listen(self.engine, 'do_connect', self._provide_token)

    def _provide_token(self, dialect, conn_rec, cargs, cparams):
        token = self.token_provider.get_token(self.settings.sql_token_scope)
        cparams['attrs_before'] = {SQL_COPT_SS_ACCESS_TOKEN: _access_token_struct(token)}


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as db_error:
        logger.exception('Database failure during %s: %s', operation, db_error)
        raise Internal(f'{operation} failed') from db_error


class SqlRepository:

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        with self.engine.connect() as conn:
            yield conn

    def fetch_games(self, conn: Connection) -> list[Game]:
        rows = conn.execute(select(games_table).order_by(games_table.c.Id))
        return [Game.from_row(row) for row in rows]

    def list_games(self) -> list[Game]:
        with store_errors('list games'), self.connection() as conn:
            return self.fetch_games(conn)

    def find_game(self, upc: str) -> Game | None:
        with store_errors('find game'), self.connection() as conn:
            row = conn.execute(select(games_table).where(games_table.c.Upc == upc)).first()
            return Game.from_row(row) if row else None

    def count_games(self) -> int:
        with store_errors('count games'), self.connection() as conn:
            return conn.execute(select(func.count()).select_from(games_table)).scalar() or 0

    def add_game(self, game: GamePayload) -> None:
        with store_errors('add game'), self.connection() as conn:
            try:
                conn.execute(insert(games_table).values(**game.to_params()))
                conn.commit()
            except IntegrityError as duplicate:
                logger.warning('Duplicate UPC %s: %s', game.upc, duplicate.orig)
                raise Conflict('A game with this UPC already exists.') from duplicate

    def update_game(self, game: GamePayload) -> int:
        params = game.to_params()
        upc = params.pop('Upc')

        with store_errors('update game'), self.connection() as conn:
            result = conn.execute(update(games_table).where(games_table.c.Upc == upc).values(**params))
            conn.commit()
            return result.rowcount

    def update_game_data(self, conn: Connection, game_id: int, data: str) -> int:
        result = conn.execute(update(games_table).where(games_table.c.Id == game_id).values(Data=data))
        conn.commit()
        return result.rowcount

    def delete_game(self, upc: str) -> int:
        with store_errors('delete game'), self.connection() as conn:
            result = conn.execute(delete(games_table).where(games_table.c.Upc == upc))
            conn.commit()
            return result.rowcount


@lru_cache
def get_repository() -> SqlRepository:
    return SqlRepository(SqlConnector(get_settings(), get_token_provider()).engine)
