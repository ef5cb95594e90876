import logging
from functools import lru_cache
from typing import Protocol

from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential
from azure.keyvault.secrets import SecretClient

from config import get_settings
from errors import Internal

logger = logging.getLogger(__name__)


class SecretProvider(Protocol):

    def get_secret(self, name: str) -> str: ...


class TokenProvider(Protocol):

    def get_token(self, *scopes: str) -> str: ...


class AzureTokenProvider:
    """Managed identity (or whatever DefaultAzureCredential resolves to locally)."""

    def __init__(self, credential=None):
        self._credential = credential or DefaultAzureCredential()

    @property
    def credential(self):
        return self._credential

    def get_token(self, *scopes: str) -> str:
        try:
            return self._credential.get_token(*scopes).token
        except AzureError as token_error:
            logger.exception('Unable to acquire token for %s: %s', scopes, token_error)
            raise Internal(f'token request failed for {scopes}') from token_error


class KeyVaultSecretProvider:

    def __init__(self, vault_url: str, credential=None):
        self.vault_url = vault_url
        self._client = SecretClient(vault_url=vault_url, credential=credential or DefaultAzureCredential())

    def get_secret(self, name: str) -> str:
        try:
            return self._client.get_secret(name).value or ''
        except AzureError as vault_error:
            logger.exception('Unable to retrieve secret %s from %s. Error: %s', name, self.vault_url, vault_error)
            raise Internal(f'secret {name} unavailable') from vault_error


@lru_cache
def get_token_provider() -> TokenProvider:
    return AzureTokenProvider()


@lru_cache
def get_secret_provider() -> SecretProvider:
    settings = get_settings()
    return KeyVaultSecretProvider(settings.key_vault_url, get_token_provider().credential)
