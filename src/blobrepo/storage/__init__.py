"""
    File-oriented access to Azure Blob Storage.

    A FileRepository maps simple file operations (add, fetch, list, copy, move,
    delete) onto the container / virtual directory / blob addressing of a storage
    account. Virtual directories are given as a list of segments which are joined
    with a forward slash, so

    repo.add("docs", File("a.txt", b"hi"), ["2024", "01"])

    writes https://ACCOUNT.blob.core.windows.net/docs/2024/01/a.txt. Omitting the
    directories (or passing an empty list) addresses the root of the container.

    Repositories for configured accounts are best obtained from the
    FileRepositoryController, which reads the azure.storage.ACCOUNT section of the
    configuration.
"""
from .base import File, StorageError, InvalidArgumentError
from .account import StorageAccount
from .azure_blob import FileRepository
from .core import FileRepositoryController
