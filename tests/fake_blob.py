import threading
import time
import typing as t
from urllib.parse import quote
import azure.core.exceptions as ace
from azure.storage.blob import BlobServiceClient
from blobrepo.storage import StorageAccount

ACCOUNT_URL = "https://acct.blob.core.windows.net"


class FakeBlobStore:

    def __init__(self):
        self.blobs: dict[tuple[str, str], bytes] = {}
        self.lock = threading.Lock()
        self.fail_deletes = False


class FakeProperties:

    def __init__(self, container: str, name: str, size: int):
        self.container = container
        self.name = name
        self.size = size


class FakeDownloader:

    def __init__(self, data: bytes, chunk_size: int = 4):
        self._data = data
        self._chunk_size = chunk_size

    def readall(self) -> bytes:
        return self._data

    def chunks(self) -> t.Iterable[bytes]:
        for i in range(0, len(self._data), self._chunk_size):
            yield self._data[i:i + self._chunk_size]


class FakeBlobClient:

    def __init__(self, store: FakeBlobStore, service_url: str, container_name: str, blob_name: str):
        self._store = store
        self._service_url = service_url.rstrip('/')
        self.container_name = container_name
        self.blob_name = blob_name

    @property
    def url(self):
        return f"{self._service_url}/{quote(self.container_name)}/{quote(self.blob_name, safe='~/')}"

    @property
    def _key(self):
        return self.container_name, self.blob_name

    def _check_exists(self):
        if self._key not in self._store.blobs:
            raise ace.ResourceNotFoundError("The specified blob does not exist.")

    def upload_blob(self, data, overwrite: bool = False):
        with self._store.lock:
            if self._key in self._store.blobs and not overwrite:
                raise ace.ResourceExistsError("The specified blob already exists.")
            self._store.blobs[self._key] = bytes(data)

    def get_blob_properties(self):
        self._check_exists()
        return FakeProperties(self.container_name, self.blob_name, len(self._store.blobs[self._key]))

    def download_blob(self, offset: int = None, length: int = None):
        self._check_exists()
        data = self._store.blobs[self._key]
        if offset is not None:
            data = data[offset:] if length is None else data[offset:offset + length]
        return FakeDownloader(data)

    def delete_blob(self):
        if self._store.fail_deletes:
            raise ace.HttpResponseError("Delete refused")
        self._check_exists()
        with self._store.lock:
            del self._store.blobs[self._key]


class FakeContainerClient:

    def __init__(self, store: FakeBlobStore, service_url: str, container_name: str):
        self._store = store
        self._service_url = service_url
        self.container_name = container_name

    def get_blob_client(self, blob: str) -> FakeBlobClient:
        return FakeBlobClient(self._store, self._service_url, self.container_name, blob)

    def list_blobs(self, name_starts_with: str = None):
        for container, name in sorted(self._store.blobs.keys()):
            if container != self.container_name:
                continue
            if name_starts_with and not name.startswith(name_starts_with):
                continue
            yield FakeProperties(container, name, len(self._store.blobs[(container, name)]))


class FakeServiceClient:

    def __init__(self, store: FakeBlobStore, url: str):
        self._store = store
        self.url = url.rstrip('/') + '/'

    def get_container_client(self, container: str) -> FakeContainerClient:
        return FakeContainerClient(self._store, self.url, container)

    def get_blob_client(self, container: str, blob: str) -> FakeBlobClient:
        return FakeBlobClient(self._store, self.url, container, blob)


class FakeAccount(StorageAccount):

    def __init__(self, store: FakeBlobStore = None, account_url: str = ACCOUNT_URL, create_delay: float = 0):
        super().__init__(account_url=account_url)
        self.store = store or FakeBlobStore()
        self.created = 0
        self._create_delay = create_delay

    def create_blob_service_client(self):
        self.created += 1
        if self._create_delay:
            time.sleep(self._create_delay)
        return FakeServiceClient(self.store, self._account_url)


class AnonymousAccount(StorageAccount):
    """Real SDK client without credentials, only used to compute URLs."""

    def __init__(self, account_url: str = ACCOUNT_URL):
        super().__init__(account_url=account_url)

    def create_blob_service_client(self):
        return BlobServiceClient(account_url=self._account_url)
