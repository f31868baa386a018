"""Input file descriptors for uploads.

A file can be referenced four ways:

- by ``file_id`` of a file already stored on Telegram servers;
- by an HTTP URL Telegram downloads on its own;
- by a local filesystem path (uploaded as ``multipart/form-data``);
- by in-memory bytes or an open binary file object (also uploaded).

The first two are sent as plain text; the last two become file parts.
Nothing is opened or read until the enclosing form is built.
"""

from __future__ import annotations

import mimetypes
import os
from enum import Enum
from typing import BinaryIO, Optional, Union

from sdk.exceptions import FormError

DEFAULT_MIME_TYPE = "application/octet-stream"


class InputFileKind(str, Enum):
    ID = "id"
    URL = "url"
    PATH = "path"
    READER = "reader"


class InputFile:
    """A file to send along with an API method.

    Use the named constructors rather than ``__init__``::

        InputFile.file_id("AgADBAADr6cxG...")
        InputFile.url("https://example.com/cat.jpg")
        InputFile.path("reports/weekly.pdf")
        InputFile.reader(b"raw bytes", name="hello.txt", mime_type="text/plain")
    """

    __slots__ = ("kind", "value", "name", "mime_type")

    def __init__(
        self,
        kind: InputFileKind,
        value: Union[str, bytes, BinaryIO, os.PathLike],
        name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.value = value
        self.name = name
        self.mime_type = mime_type

    @classmethod
    def file_id(cls, file_id: str) -> "InputFile":
        """Reference a file that already exists on the Telegram servers."""
        return cls(InputFileKind.ID, file_id)

    @classmethod
    def url(cls, url: str) -> "InputFile":
        """Let Telegram fetch the file from *url*."""
        return cls(InputFileKind.URL, url)

    @classmethod
    def path(
        cls,
        path: Union[str, os.PathLike],
        name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> "InputFile":
        """Upload a local file.  The file is opened lazily, at build time."""
        return cls(InputFileKind.PATH, path, name=name, mime_type=mime_type)

    @classmethod
    def reader(
        cls,
        data: Union[bytes, BinaryIO],
        name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> "InputFile":
        """Upload raw bytes or the contents of an open binary file object."""
        return cls(InputFileKind.READER, data, name=name, mime_type=mime_type)

    @property
    def is_upload(self) -> bool:
        """True when the file has to travel as a multipart file part."""
        return self.kind in (InputFileKind.PATH, InputFileKind.READER)

    def as_text(self) -> str:
        """Return the textual reference of an id/url file."""
        if self.is_upload:
            raise ValueError(f"{self.kind.value} file has no textual reference")
        return str(self.value)

    def read(self) -> tuple[Optional[str], bytes, Optional[str]]:
        """Load an uploadable file as ``(filename, content, mime_type)``.

        Raises:
            FormError: If the source cannot be opened or read.
        """
        name = self.name
        if self.kind is InputFileKind.PATH:
            path = os.fspath(self.value)
            try:
                with open(path, "rb") as fh:
                    content = fh.read()
            except OSError as exc:
                raise FormError(f"can not read file {path!r}: {exc}") from exc
            name = name or os.path.basename(path)
        elif self.kind is InputFileKind.READER:
            if isinstance(self.value, (bytes, bytearray)):
                content = bytes(self.value)
            else:
                try:
                    content = self.value.read()
                except (OSError, ValueError) as exc:
                    raise FormError(f"can not read file object: {exc}") from exc
                if not isinstance(content, bytes):
                    raise FormError("file object must be opened in binary mode")
        else:
            raise FormError(f"{self.kind.value} file is not uploadable")

        mime_type = self.mime_type
        if mime_type is None and name:
            mime_type = mimetypes.guess_type(name)[0] or DEFAULT_MIME_TYPE
        return name, content, mime_type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InputFile):
            return NotImplemented
        return (
            self.kind is other.kind
            and self.name == other.name
            and self.mime_type == other.mime_type
            and self.value == other.value
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.kind is InputFileKind.READER:
            return f"InputFile.reader(name={self.name!r}, mime_type={self.mime_type!r})"
        constructor = "file_id" if self.kind is InputFileKind.ID else self.kind.value
        return f"InputFile.{constructor}({self.value!r})"
