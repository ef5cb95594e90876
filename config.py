import os
import logging
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    key_vault_url: str
    api_key_secret_name: str
    database_url: str | None
    sql_server: str
    sql_database: str
    sql_driver: str
    sql_connection_timeout: int
    sql_token_scope: str
    base_path: str
    log_level: str
    host: str
    port: int


@lru_cache
def get_settings() -> Settings:
    return Settings(
        key_vault_url=os.getenv('KEY_VAULT_URL', 'https://finalkeyvault.vault.azure.net/'),
        api_key_secret_name=os.getenv('API_KEY_SECRET_NAME', 'APIKEY'),
        database_url=os.getenv('DATABASE_URL') or None,
        sql_server=os.getenv('SQL_SERVER', 'rnovarafinaldatabaseserver.database.windows.net'),
        sql_database=os.getenv('SQL_DATABASE', 'novararFinalSQLDatabase'),
        sql_driver=os.getenv('SQL_DRIVER', 'ODBC Driver 18 for SQL Server'),
        sql_connection_timeout=int(os.getenv('SQL_CONNECTION_TIMEOUT', 30)),
        sql_token_scope=os.getenv('SQL_TOKEN_SCOPE', 'https://database.windows.net/.default'),
        base_path=os.getenv('BASE_PATH', '/api').rstrip('/'),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', 8080)),
    )


def configure_logging(level: str | None = None):
    logging.basicConfig(
        level=level or get_settings().log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    # framework chatter stays at warning, like the function host filters
    for noisy in ('azure', 'sqlalchemy', 'urllib3'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
