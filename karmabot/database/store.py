"""
karmabot.database.store — Typed Trees over the Record Table
============================================================

A :class:`Tree` is a named partition of the ``records`` table holding values
of one Python type.  Every operation touches a single key in a single tree
and runs in its own session, so reads and writes are atomic per key but
nothing spans keys.

Values are serialized as compact UTF-8 JSON with sorted keys.  Each tree
carries a :class:`Codec` translating its Python type to and from plain JSON
data, e.g. a history log is stored as ``[[timestamp, karma], ...]``.

Usage::

    store = Store(engine)
    store.karma.insert("1234", 5)
    store.karma.get_or("1234", 0)    # 5
    store.up.discard("1234")         # quota counter back to its default
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError

from karmabot.constants import (
    TREE_DOWN,
    TREE_GRAPH,
    TREE_KARMA,
    TREE_LAST,
    TREE_LAST_MESSAGE,
    TREE_MEMBERS,
    TREE_UP,
)
from karmabot.database.engine import get_session
from karmabot.database.models import Record

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class StoreError(Exception):
    """Base class for failures raised by the record store."""


class RecordDecodeError(StoreError):
    """Stored bytes could not be decoded into the tree's value type."""


class StorageIOError(StoreError):
    """The underlying database failed to read or write."""


# ---------------------------------------------------------------------------
# Codecs
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Measure:
    """One history sample: the receiver's karma right after a change."""

    timestamp: int
    karma: int


@dataclass(frozen=True, slots=True)
class Codec(Generic[T]):
    """Maps a tree's value type to JSON-compatible data and back."""

    encode: Callable[[T], Any]
    decode: Callable[[Any], T]


def _strict_int(data: Any) -> int:
    if isinstance(data, bool) or not isinstance(data, int):
        raise TypeError(f"expected int, got {type(data).__name__}")
    return data


def _decode_members(data: Any) -> set[str]:
    if not isinstance(data, list):
        raise TypeError(f"expected list, got {type(data).__name__}")
    return {str(item) for item in data}


def _encode_history(measures: list[Measure]) -> list[list[int]]:
    return [[m.timestamp, m.karma] for m in measures]


def _decode_history(data: Any) -> list[Measure]:
    if not isinstance(data, list):
        raise TypeError(f"expected list, got {type(data).__name__}")
    return [Measure(_strict_int(ts), _strict_int(karma)) for ts, karma in data]


INT_CODEC: Codec[int] = Codec(encode=int, decode=_strict_int)
MEMBERS_CODEC: Codec[set[str]] = Codec(encode=sorted, decode=_decode_members)
HISTORY_CODEC: Codec[list[Measure]] = Codec(encode=_encode_history, decode=_decode_history)


# ---------------------------------------------------------------------------
# Tree — typed single-partition repository
# ---------------------------------------------------------------------------
class Tree(Generic[T]):
    """Typed get/put/remove access to one partition of the record table."""

    def __init__(self, engine: Engine, name: str, codec: Codec[T]) -> None:
        self.engine = engine
        self.name = name
        self.codec = codec

    def __repr__(self) -> str:
        return f"<Tree {self.name!r}>"

    # -- serialization ------------------------------------------------------
    def _dumps(self, value: T) -> bytes:
        data = self.codec.encode(value)
        return json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")

    def _loads(self, key: str, raw: bytes) -> T:
        try:
            return self.codec.decode(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, ValueError, TypeError, KeyError) as exc:
            raise RecordDecodeError(
                f"Cannot decode {self.name}[{key}]: {exc}"
            ) from exc

    # -- operations ---------------------------------------------------------
    def get(self, key: str | int) -> T | None:
        """Return the value stored under *key*, or ``None`` if absent."""
        key = str(key)
        try:
            with get_session(self.engine) as session:
                raw = session.scalar(
                    select(Record.value).where(Record.tree == self.name, Record.key == key)
                )
        except SQLAlchemyError as exc:
            raise StorageIOError(f"Failed to read {self.name}[{key}]") from exc
        if raw is None:
            return None
        return self._loads(key, raw)

    def get_or(self, key: str | int, default: T) -> T:
        """Return the value under *key*, falling back to *default*."""
        value = self.get(key)
        return default if value is None else value

    def insert(self, key: str | int, value: T) -> None:
        """Store *value* under *key*, replacing any previous value."""
        key = str(key)
        raw = self._dumps(value)
        try:
            with get_session(self.engine) as session:
                session.merge(Record(tree=self.name, key=key, value=raw))
        except SQLAlchemyError as exc:
            raise StorageIOError(f"Failed to write {self.name}[{key}]") from exc

    def remove(self, key: str | int) -> T | None:
        """Delete *key* and return the value it held, if any.

        A record that fails to decode is left in place.
        """
        key = str(key)
        try:
            with get_session(self.engine) as session:
                record = session.get(Record, (self.name, key))
                if record is None:
                    return None
                value = self._loads(key, record.value)
                session.delete(record)
        except SQLAlchemyError as exc:
            raise StorageIOError(f"Failed to remove {self.name}[{key}]") from exc
        return value

    def discard(self, key: str | int) -> bool:
        """Delete *key* without decoding it.  Returns True if it existed."""
        key = str(key)
        try:
            with get_session(self.engine) as session:
                result = session.execute(
                    delete(Record).where(Record.tree == self.name, Record.key == key)
                )
                removed = bool(result.rowcount)
        except SQLAlchemyError as exc:
            raise StorageIOError(f"Failed to remove {self.name}[{key}]") from exc
        return removed

    def clear(self) -> int:
        """Delete every key in this tree.  Returns the number of rows removed."""
        try:
            with get_session(self.engine) as session:
                result = session.execute(delete(Record).where(Record.tree == self.name))
                removed = result.rowcount or 0
        except SQLAlchemyError as exc:
            raise StorageIOError(f"Failed to clear {self.name}") from exc
        logger.info("Cleared tree %s (%d keys)", self.name, removed)
        return removed


# ---------------------------------------------------------------------------
# Store — every tree the ledger uses
# ---------------------------------------------------------------------------
class Store:
    """Bundle of the typed trees backing the karma ledger."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.karma: Tree[int] = Tree(engine, TREE_KARMA, INT_CODEC)
        self.up: Tree[int] = Tree(engine, TREE_UP, INT_CODEC)
        self.down: Tree[int] = Tree(engine, TREE_DOWN, INT_CODEC)
        self.last: Tree[int] = Tree(engine, TREE_LAST, INT_CODEC)
        self.graph: Tree[list[Measure]] = Tree(engine, TREE_GRAPH, HISTORY_CODEC)
        self.members: Tree[set[str]] = Tree(engine, TREE_MEMBERS, MEMBERS_CODEC)
        self.last_message: Tree[int] = Tree(engine, TREE_LAST_MESSAGE, INT_CODEC)
