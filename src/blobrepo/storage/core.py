import threading
import typing as t
import zirconium as zr
import zrlog
from autoinject import injector
from blobrepo.util import ConfigError
from .account import StorageAccount
from .azure_blob import FileRepository


@injector.injectable_global
class FileRepositoryController:
    """Builds and caches one FileRepository per configured storage account.

        [azure.storage.ACCOUNT]
        connection_string = "..."   # optional
        account_url = "https://ACCOUNT.blob.core.windows.net"   # optional, this is the default

        Without a connection string, DefaultAzureCredential is used against the account URL.
    """

    config: zr.ApplicationConfig = None

    @injector.construct
    def __init__(self):
        self._repositories: dict[str, FileRepository] = {}
        self._lock = threading.Lock()
        self._log = zrlog.get_logger("blobrepo.controller")

    def get_account(self, account_name: str) -> StorageAccount:
        """Build the account handle for the given account from the configuration."""
        if account_name is None or not account_name.strip():
            raise ConfigError("Storage account name is required", 1000)
        connection_string = self.config.as_str(("azure", "storage", account_name, "connection_string"), default=None)
        account_url = self.config.as_str(("azure", "storage", account_name, "account_url"), default=None)
        if connection_string:
            return StorageAccount(account_url=account_url, connection_string=connection_string)
        if not account_url:
            account_url = f"https://{account_name}.blob.core.windows.net"
        elif not (account_url.startswith("https://") or account_url.startswith("http://")):
            raise ConfigError(f"Invalid value for azure.storage.{account_name}.account_url", 1001)
        return StorageAccount(account_url=account_url)

    def get_repository(self, account_name: str) -> FileRepository:
        """Get the repository for the given account."""
        if account_name not in self._repositories:
            with self._lock:
                if account_name not in self._repositories:
                    self._log.debug(f"Building file repository for [{account_name}]")
                    self._repositories[account_name] = FileRepository(self.get_account(account_name))
        return self._repositories[account_name]

    def repositories(self) -> t.Iterable[str]:
        """Names of the accounts with a repository built so far."""
        return list(self._repositories.keys())
