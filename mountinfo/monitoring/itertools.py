# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
from dataclasses import asdict
from functools import partial
from typing import Any, Callable, Generator, Iterable, List, TypeVar

TItem = TypeVar("TItem")

json_dumps_compact = partial(json.dumps, separators=(",", ":"))


def json_dumps_dataclass(data: Any) -> str:
    return json_dumps_compact(asdict(data))


# "[]"
_BRACKETS_SIZE = 2


def chunk_by_json_size(
    items: Iterable[TItem], size_hint_bytes: int, json_dump: Callable[[TItem], str]
) -> Generator[List[TItem], None, None]:
    """Group rows into as few chunks as possible such that each chunk, encoded
    as a compact JSON list, is at most `size_hint_bytes` bytes.

    Raises:
        ValueError: If the size hint is not positive, or a single row does not
            fit in a chunk on its own.
    """
    if size_hint_bytes <= 0:
        raise ValueError(
            f"Size hint must be a positive integer, but got {size_hint_bytes}"
        )

    chunk: List[TItem] = []
    chunk_size = _BRACKETS_SIZE
    for item in items:
        item_size = len(json_dump(item).encode())
        if item_size + _BRACKETS_SIZE > size_hint_bytes:
            raise ValueError(
                f"Got item of size {item_size} which is not less than {size_hint_bytes} - {_BRACKETS_SIZE} bytes"
            )

        # a comma precedes every item but the first
        needed = item_size + (1 if chunk else 0)
        if chunk_size + needed > size_hint_bytes:
            yield chunk
            chunk = []
            chunk_size = _BRACKETS_SIZE
            needed = item_size
        chunk.append(item)
        chunk_size += needed

    if chunk:
        yield chunk
