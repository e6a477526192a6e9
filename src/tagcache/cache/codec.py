"""Value codecs for cached payloads.

Backends only see bytes. A codec turns loader results into bytes on the way
in and back into the same Python types on the way out.
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar

import orjson
from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


class Codec(Protocol):
    def encode(self, value: Any) -> bytes: ...

    def decode(self, data: bytes) -> Any: ...


class JsonCodec:
    """orjson codec for plain JSON-compatible values."""

    def encode(self, value: Any) -> bytes:
        return orjson.dumps(value)

    def decode(self, data: bytes) -> Any:
        return orjson.loads(data)


class ModelCodec(Generic[M]):
    """Codec for a pydantic model, a list of models, or None.

    The payload records its shape so a cached empty list and a cached None
    decode back to what the loader returned.
    """

    def __init__(self, model: type[M]):
        self.model = model

    def encode(self, value: M | list[M] | None) -> bytes:
        if value is None:
            return orjson.dumps({"kind": "none"})
        if isinstance(value, BaseModel):
            return orjson.dumps({"kind": "one", "item": value.model_dump(mode="json")})
        return orjson.dumps(
            {"kind": "many", "items": [item.model_dump(mode="json") for item in value]}
        )

    def decode(self, data: bytes) -> M | list[M] | None:
        parsed = orjson.loads(data)
        kind = parsed["kind"]
        if kind == "none":
            return None
        if kind == "one":
            return self.model.model_validate(parsed["item"])
        if kind == "many":
            return [self.model.model_validate(item) for item in parsed["items"]]
        raise ValueError(f"Unknown payload kind: {kind}")


JSON = JsonCodec()
