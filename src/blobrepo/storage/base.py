from __future__ import annotations
import posixpath
import typing as t
from blobrepo.util import BlobRepoError


class StorageError(BlobRepoError):
    """Error class specifically for storage errors."""

    def __init__(self, msg, code, is_recoverable: bool = False):
        super().__init__(msg, "STORAGE", code, is_recoverable=is_recoverable)


class InvalidArgumentError(StorageError, ValueError):
    """Raised before any I/O when a required argument is missing or unusable."""

    def __init__(self, msg, code: int = 1000):
        super().__init__(msg, code)


def require_argument(value, arg_name: str):
    """Raise an InvalidArgumentError if the value is None."""
    if value is None:
        raise InvalidArgumentError(f"Argument [{arg_name}] is required", 1000)
    return value


def require_name(value: t.Optional[str], arg_name: str) -> str:
    """Raise an InvalidArgumentError if the value is None or blank."""
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"Argument [{arg_name}] must not be blank", 1001)
    return value


def normalize_directories(directories: t.Union[str, t.Sequence[str], None]) -> list[str]:
    """Convert the directories argument into a list of segments.

        None and an empty sequence both mean the root of the container. A
        plain string is treated as a single segment. Trailing slashes are
        removed from each segment.
    """
    if directories is None:
        return []
    if isinstance(directories, str):
        directories = [directories]
    segments = []
    for idx, segment in enumerate(directories):
        if segment is None:
            raise InvalidArgumentError(f"Directory segment [{idx}] is required", 1002)
        segments.append(segment.rstrip("/"))
    return segments


def join_directories(directories: t.Union[str, t.Sequence[str], None]) -> str:
    """Join directory segments with a forward slash, regardless of the host OS."""
    return "/".join(normalize_directories(directories))


def blob_path(file_name: str, directories: t.Union[str, t.Sequence[str], None] = None) -> str:
    """Build the blob name of a file within the (optional) virtual directory."""
    directory = join_directories(directories)
    if not directory:
        return file_name
    return f"{directory}/{file_name}"


def base_name(file_name: str) -> str:
    """Last segment of a forward-slash separated path."""
    return posixpath.basename(file_name)


class File:
    """A named chunk of bytes, as added to or fetched from a repository."""

    __slots__ = ('_name', '_content')

    def __init__(self, name: str, content: t.Union[bytes, bytearray, memoryview]):
        self._name = name
        self._content = bytes(content) if content is not None else None

    @property
    def name(self) -> str:
        return self._name

    @property
    def content(self) -> bytes:
        return self._content

    def text(self, encoding: str = 'utf-8') -> str:
        return self._content.decode(encoding)

    def __len__(self):
        return 0 if self._content is None else len(self._content)

    def __eq__(self, other):
        if not isinstance(other, File):
            return NotImplemented
        return self._name == other._name and self._content == other._content

    def __hash__(self):
        return hash((self._name, self._content))

    def __repr__(self):
        return f"File({self._name!r}, <{len(self)} bytes>)"
