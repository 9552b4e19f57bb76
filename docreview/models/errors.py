from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict


class _DecodeErrorBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        return self.kind


class NoJsonObjectFound(_DecodeErrorBase):
    kind: Literal["no_json_object_found"] = "no_json_object_found"


class Unparseable(_DecodeErrorBase):
    kind: Literal["unparseable"] = "unparseable"
    attempted_text: str
    parse_message: str

    def describe(self) -> str:
        return f"unparseable: {self.parse_message}"


class SchemaInvalid(_DecodeErrorBase):
    kind: Literal["schema_invalid"] = "schema_invalid"
    path: str
    found_value: Any = None
    reason: str = ""

    def describe(self) -> str:
        return f"schema_invalid at {self.path}: {self.reason} (found {self.found_value!r})"


DecodeError = Union[NoJsonObjectFound, Unparseable, SchemaInvalid]
DECODE_ERROR_TYPES = (NoJsonObjectFound, Unparseable, SchemaInvalid)
