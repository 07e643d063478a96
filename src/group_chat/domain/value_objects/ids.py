from __future__ import annotations

from typing import NewType, TypeAlias

DurableId = NewType("DurableId", int)
ProvisionalId = NewType("ProvisionalId", str)

MessageKey: TypeAlias = DurableId | ProvisionalId

# Server ids are integers, so any string key lives in a disjoint namespace.
PROVISIONAL_PREFIX = "temp_"


def make_provisional_id(counter: int) -> ProvisionalId:
    return ProvisionalId(f"{PROVISIONAL_PREFIX}{counter}")


def is_provisional(key: int | str) -> bool:
    return isinstance(key, str) and key.startswith(PROVISIONAL_PREFIX)
