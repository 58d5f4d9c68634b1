"""
Persistence of discovery results.

The searcher's top triples are stored under ``profitableTrios`` in a
key-value store that is scoped to one network. A stored list is reused
indefinitely; only an explicit clear or refresh replaces it.
"""

import json
import logging
import os
import tempfile
import threading
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from .exceptions import ValidationError
from .searcher import CycleSearcher
from .types import Network, Token, TriangleResult, Triple

logger = logging.getLogger(__name__)

SUGGESTIONS_KEY = "profitableTrios"


@runtime_checkable
class KeyValueStore(Protocol):
    """String key-value persistence."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...


class MemoryStore:
    """In-process store, for tests and throwaway runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    Key-value store backed by one JSON object on disk.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so readers see either the old or the new file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    @classmethod
    def for_network(cls, cache_dir: Union[str, Path], network: Network) -> "JsonFileStore":
        """One file per network id, e.g. ``.cache/ethereum.json``."""
        return cls(Path(cache_dir) / f"{network.id}.json")

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse store file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Store file {self.path} must contain a JSON object")
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.stem}_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, self.path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)


# Serialization
def token_to_dict(token: Token) -> Dict[str, Any]:
    return {
        "address": token.address,
        "symbol": token.symbol,
        "decimals": token.decimals,
        "network": token.network,
    }


def token_from_dict(raw: Dict[str, Any]) -> Token:
    try:
        return Token(
            address=str(raw["address"]),
            symbol=str(raw["symbol"]),
            decimals=int(raw["decimals"]),
            network=str(raw["network"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid token record: {raw!r}") from e


def serialize_suggestions(results: Sequence[TriangleResult]) -> str:
    """
    Encode results as ``[{tokens: {token1, token2, token3}, profit}, ...]``.

    Amounts are added as strings so Decimals survive the round trip; profit
    stays a JSON number.
    """
    records = []
    for result in results:
        record: Dict[str, Any] = {
            "tokens": {
                "token1": token_to_dict(result.triple.token1),
                "token2": token_to_dict(result.triple.token2),
                "token3": token_to_dict(result.triple.token3),
            },
            "profit": float(result.profit),
        }
        if result.initial_amount is not None:
            record["initialAmount"] = str(result.initial_amount)
        if result.final_amount is not None:
            record["finalAmount"] = str(result.final_amount)
        records.append(record)
    return json.dumps(records)


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def deserialize_suggestions(payload: str) -> List[TriangleResult]:
    """
    Decode a stored suggestion list.

    Raises:
        ValidationError: If the payload is not a valid suggestion list
    """
    try:
        records = json.loads(payload)
    except (json.JSONDecodeError, TypeError) as e:
        raise ValidationError(f"Suggestion list is not valid JSON: {e}") from e
    if not isinstance(records, list):
        raise ValidationError("Suggestion list must be a JSON array")

    results = []
    for record in records:
        try:
            tokens = record["tokens"]
            triple = Triple(
                token_from_dict(tokens["token1"]),
                token_from_dict(tokens["token2"]),
                token_from_dict(tokens["token3"]),
            )
            results.append(
                TriangleResult(
                    triple=triple,
                    profit=Decimal(str(record["profit"])),
                    initial_amount=_optional_decimal(record.get("initialAmount")),
                    final_amount=_optional_decimal(record.get("finalAmount")),
                )
            )
        except (KeyError, TypeError, AttributeError, InvalidOperation) as e:
            raise ValidationError(f"Invalid suggestion record: {record!r}") from e
    return results


class ResultCache:
    """
    Gates discovery scans behind a persisted suggestion list.

    If the store already holds a list, it is returned without running the
    searcher. Otherwise the searcher runs once and its output is saved.
    """

    def __init__(
        self,
        store: KeyValueStore,
        searcher: CycleSearcher,
        key: str = SUGGESTIONS_KEY,
    ):
        self.store = store
        self.searcher = searcher
        self.key = key

    def load(self) -> Optional[List[TriangleResult]]:
        """Return the stored list, or None if absent or unreadable."""
        payload = self.store.get(self.key)
        if payload is None:
            return None
        try:
            results = deserialize_suggestions(payload)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry '{self.key}': {e}")
            return None
        logger.info(f"Loaded {len(results)} cached suggestions")
        return results

    def save(self, results: Sequence[TriangleResult]) -> None:
        self.store.set(self.key, serialize_suggestions(results))
        logger.info(f"Saved {len(results)} suggestions under '{self.key}'")

    def clear(self) -> None:
        self.store.delete(self.key)
        logger.info(f"Cleared cache entry '{self.key}'")

    async def refresh(self, catalog: Sequence[Token]) -> List[TriangleResult]:
        """Run a full scan and overwrite the stored list."""
        results = await self.searcher.search(catalog)
        self.save(results)
        return results

    async def get_or_compute(self, catalog: Sequence[Token]) -> List[TriangleResult]:
        """Return the stored list, scanning only when nothing usable is stored."""
        cached = self.load()
        if cached is not None:
            return cached
        return await self.refresh(catalog)
