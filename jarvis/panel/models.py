"""
Best effort decoding of the panel responses.

The panel API has no schema to speak of: list endpoints usually return a JSON array, some wrap it
in an object with a "data" field and errors come back as an object with a "status" and a "msg".
None of the functions in this module raise on malformed input, fields that are missing or have
an unexpected type simply keep their default value.
"""

import json
import typing as t

from pydantic import BaseModel, field_validator


class PanelItem(BaseModel):
    """
    A single entry of a list endpoint, e.g. a crontab job or a site.
    """

    id: int = 0
    name: str = ""
    type: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def lenient_id(cls, v: object) -> int:
        try:
            return int(v)
        except (TypeError, ValueError):
            return 0

    @field_validator("name", "type", mode="before")
    @classmethod
    def lenient_string(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v)


class ErrorEnvelope(BaseModel):
    """
    The error envelope of a panel response. Only a non-empty string "status" marks an error, a
    status of any other type (booleans and numbers included) counts as success.
    """

    status: str = ""
    msg: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def lenient_status(cls, v: object) -> str:
        if isinstance(v, str):
            return v
        return ""

    @field_validator("msg", mode="before")
    @classmethod
    def lenient_msg(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v)

    @property
    def is_error(self) -> bool:
        return self.status != ""

    @property
    def message(self) -> str:
        """
        The message of the panel, or a generic one naming the status if the panel sent none.
        """
        if self.msg:
            return self.msg
        return f'the panel reported an error (status "{self.status}")'


def decode_json(text: str) -> t.Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def decode_error(text: str) -> ErrorEnvelope | None:
    """
    Returns the error envelope contained in the response ``text`` or None if the response does not
    represent an error. A response is an error if it is a JSON object whose "status" field is a
    non-empty string.
    """
    data = decode_json(text)
    if not isinstance(data, dict):
        return None

    envelope = ErrorEnvelope.model_validate(data)
    if envelope.is_error:
        return envelope

    return None


def decode_items(text: str) -> list[PanelItem]:
    """
    Decodes the response ``text`` of a list endpoint into a list of PanelItem instances. Accepts a
    JSON array of objects or an object whose "data" field is such an array. Everything else results
    in an empty list.
    """
    data = decode_json(text)
    if isinstance(data, dict):
        data = data.get("data")

    if not isinstance(data, list):
        return []

    return [PanelItem.model_validate(element) for element in data if isinstance(element, dict)]


def pretty_body(text: str) -> str:
    """
    Returns the response ``text`` as indented JSON if it can be decoded and verbatim otherwise.
    """
    data = decode_json(text)
    if data is None:
        return text

    return json.dumps(data, indent=4, ensure_ascii=False)
