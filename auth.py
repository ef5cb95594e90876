import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header

from config import Settings, get_settings
from credentials import SecretProvider, get_secret_provider
from errors import Unauthorized

logger = logging.getLogger(__name__)


class ApiKeyGuard:

    def __init__(self, secret_provider: SecretProvider, secret_name: str = 'APIKEY'):
        self.secret_provider = secret_provider
        self.secret_name = secret_name

    def validate(self, api_key: str | None) -> None:
        if not api_key:
            logger.warning('x-api-key header missing')
            raise Unauthorized()

        # provider failures propagate as Internal
        expected_key = self.secret_provider.get_secret(self.secret_name)

        if not expected_key or not secrets.compare_digest(expected_key.encode(), api_key.encode()):
            logger.warning('x-api-key mismatch')
            raise Unauthorized()


def require_api_key(x_api_key: Annotated[str | None, Header()] = None,
                    secret_provider: SecretProvider = Depends(get_secret_provider),
                    settings: Settings = Depends(get_settings)) -> None:
    ApiKeyGuard(secret_provider, settings.api_key_secret_name).validate(x_api_key)
