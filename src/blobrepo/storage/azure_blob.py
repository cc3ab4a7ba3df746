import pathlib
import posixpath
import threading
import typing as t
from urllib.parse import urlparse, unquote
import azure.core.exceptions as ace
from azure.storage.blob import BlobServiceClient, BlobClient, BlobProperties
import zrlog
from blobrepo.util import HaltFlag, HaltInterrupt
from .account import StorageAccount
from .base import File, InvalidArgumentError, require_argument, require_name, blob_path, base_name, join_directories


Directories = t.Union[str, t.Sequence[str], None]

EMULATOR_HOSTS = ("localhost", "127.0.0.1")


class FileRepository:
    """File-like operations on the blobs of a storage account.

        Files are addressed either by container, file name and an optional list of
        virtual directories (joined with a forward slash) or by their absolute URL.
        Errors from the storage service are not translated; they reach the caller
        as raised by the Azure SDK.

        Moving a blob is a copy followed by a delete. If the delete fails, the blob
        remains at both addresses.
    """

    def __init__(self, account: StorageAccount):
        require_argument(account, "account")
        self._account = account
        self._service_client: t.Optional[BlobServiceClient] = None
        self._client_lock = threading.Lock()
        self._log = zrlog.get_logger("blobrepo.files")

    @property
    def account(self) -> StorageAccount:
        return self._account

    @property
    def service_client(self) -> BlobServiceClient:
        if self._service_client is None:
            with self._client_lock:
                if self._service_client is None:
                    self._service_client = self._account.create_blob_service_client()
        return self._service_client

    def file_url(self, container: str, file_name: str, directories: Directories = None) -> str:
        """Get the absolute URL of a file without contacting the service."""
        return self._blob_client(container, file_name, directories).url

    @staticmethod
    def directory_name(url: t.Optional[str]) -> t.Optional[str]:
        """Get the virtual directory of a blob URL, relative to its container.

            Blank values are returned as-is and blobs at the root of their container
            have an empty directory name. Emulator URLs (localhost or 127.0.0.1) carry
            the account name before the container; it is skipped.
        """
        if url is None or not url.strip():
            return url
        url_parts = urlparse(url)
        directory = posixpath.dirname(url_parts.path)
        parts = directory.lstrip('/').split('/')
        if url_parts.hostname in EMULATOR_HOSTS:
            parts = parts[1:]
        if len(parts) > 1:
            return "/".join(unquote(x) for x in parts[1:])
        return ""

    def add(self, container: str, file: File, directories: Directories = None) -> str:
        """Upload the file, replacing any existing blob, and return its URL."""
        require_argument(file, "file")
        require_name(file.name, "file.name")
        require_argument(file.content, "file.content")
        client = self._blob_client(container, file.name, directories)
        self._log.debug(f"Uploading {len(file.content)} bytes to [{client.url}]")
        client.upload_blob(file.content, overwrite=True)
        return client.url

    def get_file(self, container: str, file_name: str, directories: Directories = None) -> File:
        """Download a file into memory."""
        client = self._blob_client(container, file_name, directories)
        return File(base_name(file_name), self._read_bytes(client))

    def get_bytes(self, url: str) -> bytes:
        """Download the content of the blob at the given URL."""
        return self._read_bytes(self._blob_client_from_url(url))

    def get_text(self, url: str, encoding: str = 'utf-8') -> str:
        """Download the content of the blob at the given URL as text."""
        return self.get_bytes(url).decode(encoding)

    def save(self, url: str, local_path: t.Union[str, pathlib.Path], halt_flag: HaltFlag = None):
        """Download the blob at the given URL into a new local file.

            An existing local file is never overwritten: FileExistsError is raised
            instead. A partially written file is removed if the download fails.
        """
        client = self._blob_client_from_url(url)
        local_path = pathlib.Path(local_path)
        handle = open(local_path, "xb")
        try:
            with handle:
                self._log.debug(f"Downloading [{client.url}] to [{local_path}]")
                stream = client.download_blob()
                for chunk in HaltFlag.iterate(stream.chunks(), halt_flag, True):
                    handle.write(chunk)
        except (Exception, HaltInterrupt) as ex:
            local_path.unlink(True)
            raise ex

    def list_blobs(self, container: str, directories: Directories = None, halt_flag: HaltFlag = None) -> t.Iterable[BlobProperties]:
        """List every blob under the container or directory, at any depth."""
        require_name(container, "container")
        directory = join_directories(directories)
        return self._list_blobs(container, f"{directory}/" if directory else None, halt_flag)

    def _list_blobs(self, container: str, prefix: t.Optional[str], halt_flag: HaltFlag = None) -> t.Iterable[BlobProperties]:
        self._log.debug(f"Listing blobs in [{container}] with prefix [{prefix or ''}]")
        client = self.service_client.get_container_client(container)
        yield from HaltFlag.iterate(client.list_blobs(name_starts_with=prefix), halt_flag, True)

    def copy(self, url: str, dest_container: str, directories: Directories = None) -> str:
        """Copy the blob at the given URL into another container or directory.

            The content is downloaded and uploaded again, it does not use a
            server-side copy. Returns the URL of the new blob.
        """
        source = self._blob_client_from_url(url)
        target = self._blob_client(dest_container, base_name(source.blob_name), directories)
        content = self._read_bytes(source)
        self._log.debug(f"Copying [{source.url}] to [{target.url}]")
        target.upload_blob(content, overwrite=True)
        return target.url

    def move(self, url: str, dest_container: str, directories: Directories = None) -> str:
        """Copy the blob, then delete the original. Returns the URL of the new blob.

            Moving a blob onto its own address leaves it in place.
        """
        source = self._blob_client_from_url(url)
        new_url = self.copy(url, dest_container, directories)
        if new_url == source.url:
            self._log.debug(f"Blob [{source.url}] moved onto itself, not deleting")
            return new_url
        self._delete(source)
        return new_url

    def delete(self, url: str):
        """Delete the blob at the given URL if it exists."""
        self._delete(self._blob_client_from_url(url))

    def delete_file(self, container: str, file_name: str, directories: Directories = None):
        """Delete the file if it exists."""
        self._delete(self._blob_client(container, file_name, directories))

    def _delete(self, client: BlobClient):
        try:
            self._log.debug(f"Deleting [{client.url}]")
            client.delete_blob()
        except ace.ResourceNotFoundError:
            self._log.debug(f"Blob [{client.url}] does not exist, nothing to delete")

    def _read_bytes(self, client: BlobClient) -> bytes:
        # Properties first, then download exactly the stored range
        size = client.get_blob_properties().size
        self._log.debug(f"Downloading {size} bytes from [{client.url}]")
        if not size:
            return b''
        return client.download_blob(offset=0, length=size).readall()

    def _blob_client(self, container: str, file_name: str, directories: Directories = None) -> BlobClient:
        require_name(container, "container")
        require_name(file_name, "file_name")
        return self.service_client.get_container_client(container).get_blob_client(blob_path(file_name, directories))

    def _blob_client_from_url(self, url: str) -> BlobClient:
        require_name(url, "url")
        url_parts = urlparse(url)
        account_parts = urlparse(self.service_client.url)
        if url_parts.netloc.lower() != account_parts.netloc.lower():
            raise InvalidArgumentError(f"URL [{url}] does not belong to storage account [{self._account}]", 1003)
        path = url_parts.path
        # Emulator endpoints carry the account name as the first path segment
        account_prefix = account_parts.path.rstrip('/')
        if account_prefix and path.startswith(account_prefix + '/'):
            path = path[len(account_prefix):]
        path_parts = path.lstrip('/').split('/')
        if len(path_parts) < 2 or path_parts[0] == "":
            raise InvalidArgumentError(f"URL [{url}] is missing a container name", 1004)
        blob_name = unquote("/".join(path_parts[1:]))
        if not blob_name:
            raise InvalidArgumentError(f"URL [{url}] is missing a blob name", 1005)
        return self.service_client.get_blob_client(unquote(path_parts[0]), blob_name)
