"""Azure storage account handle."""
import typing as t
from urllib.parse import urlparse
from azure.storage.blob import BlobServiceClient
from azure.identity import DefaultAzureCredential
import zrlog
from .base import InvalidArgumentError


class StorageAccount:
    """Endpoint and credential for a storage account.

        Either a connection string or an account URL must be given. When only the
        URL is known and no credential is provided, DefaultAzureCredential is used
        so that managed identities and developer logins work without configuration.
    """

    def __init__(self,
                 account_url: t.Optional[str] = None,
                 credential=None,
                 connection_string: t.Optional[str] = None):
        if not (account_url or connection_string):
            raise InvalidArgumentError("Either an account URL or a connection string is required", 1010)
        self._account_url = account_url.rstrip('/') if account_url else None
        self._credential = credential
        self._connection_string = connection_string
        self._log = zrlog.get_logger("blobrepo.account")

    @property
    def name(self) -> t.Optional[str]:
        if self._connection_string:
            for piece in self._connection_string.split(';'):
                key, _, value = piece.partition('=')
                if key.strip().lower() == 'accountname':
                    return value.strip()
        if self._account_url:
            hostname = urlparse(self._account_url).hostname or ''
            if hostname.endswith(".blob.core.windows.net"):
                return hostname[:-22]
            return hostname
        return None

    def create_blob_service_client(self) -> BlobServiceClient:
        """Build a new client for the blob service of this account."""
        if self._connection_string:
            self._log.info(f"Creating blob service client for [{self.name}] from connection string")
            return BlobServiceClient.from_connection_string(self._connection_string, credential=self._credential)
        self._log.info(f"Creating blob service client for [{self._account_url}]")
        credential = self._credential if self._credential is not None else DefaultAzureCredential()
        return BlobServiceClient(account_url=self._account_url, credential=credential)

    def __str__(self):
        return self.name or ""
