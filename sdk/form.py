"""Multipart form builder.

A :class:`Form` maps unique field names to either text or an
:class:`~sdk.files.InputFile`.  Fields keep their insertion order;
re-inserting a name replaces the value in place.  :meth:`Form.build`
turns the fields into the part list accepted by the ``files=`` argument
of :mod:`requests`, one part per field, in order.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel

from sdk.exceptions import FormError
from sdk.files import InputFile

FormValue = Union[str, InputFile]

# (field name, (filename, content[, mime type])) as understood by requests
FormPart = Tuple[str, Tuple[Any, ...]]


def to_form_text(value: Any) -> str:
    """Canonical text form of a primitive or structured value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump_json(exclude_none=True, by_alias=True)
    return json.dumps(to_jsonable(value), separators=(",", ":"), ensure_ascii=False)


def to_jsonable(value: Any) -> Any:
    """Recursively convert models, enums and id/url files to JSON-ready data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True, by_alias=True)
    if isinstance(value, InputFile):
        return value.as_text()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [to_jsonable(v) for v in value]
        return sorted(items) if isinstance(value, (set, frozenset)) else items
    return value


class Form:
    """Ordered collection of named multipart fields."""

    def __init__(self, fields: Optional[Iterable[Tuple[str, Any]]] = None) -> None:
        self._fields: Dict[str, FormValue] = {}
        for name, value in fields or ():
            self.insert(name, value)

    def insert(self, name: str, value: Any) -> None:
        """Set *name* to *value*, overwriting any previous value."""
        if not isinstance(value, InputFile):
            value = to_form_text(value)
        self._fields[name] = value

    def remove(self, name: str) -> None:
        self._fields.pop(name, None)

    def get(self, name: str) -> Optional[FormValue]:
        return self._fields.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[Tuple[str, FormValue]]:
        return iter(self._fields.items())

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Form):
            return NotImplemented
        return list(self._fields.items()) == list(other._fields.items())

    def __repr__(self) -> str:
        return f"Form({list(self._fields.items())!r})"

    def build(self) -> List[FormPart]:
        """Materialise every field into a multipart part.

        Text fields (and id/url files) become parts without a filename.
        Uploads become file parts with a filename -- explicit, taken from
        the path, or generated from the field name -- and a MIME type.

        Raises:
            FormError: If a file source cannot be opened or read.
        """
        parts: List[FormPart] = []
        for name, value in self._fields.items():
            if isinstance(value, str):
                parts.append((name, (None, value)))
            elif not value.is_upload:
                parts.append((name, (None, value.as_text())))
            else:
                filename, content, mime_type = value.read()
                filename = filename or name
                if mime_type:
                    parts.append((name, (filename, content, mime_type)))
                else:
                    parts.append((name, (filename, content)))
        return parts


__all__ = ["Form", "FormError", "FormPart", "FormValue", "to_form_text", "to_jsonable"]
