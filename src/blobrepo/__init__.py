from .storage import File, FileRepository, FileRepositoryController, StorageAccount, StorageError, InvalidArgumentError
from .util import BlobRepoError, ConfigError

__VERSION__ = "0.1.0"
