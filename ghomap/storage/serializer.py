from typing import Any, Protocol
import json

from ghomap.errors import CorruptEntry, NotSerializable


class Serializer(Protocol):
    """Serialize/deserialize Python values for backends that store bytes.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    `extension` is the file suffix a file backend uses for the payload.
    """

    extension: str

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class JSONSerializer:
    """Compact UTF-8 JSON.

    Only plain JSON types are accepted; anything the json module cannot
    encode (sets, arbitrary objects, circular structures, NaN) raises
    `NotSerializable`.
    """

    extension = ".json"

    def dump(self, value: Any) -> bytes:
        try:
            text = json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise NotSerializable(f"provided data must be json-able: {exc}") from exc
        return text.encode("utf-8")

    def load(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise CorruptEntry(reason=str(exc)) from exc
