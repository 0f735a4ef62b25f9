"""Staged-rollout partition membership."""

from __future__ import annotations

from typing import Protocol

from selfupdater.constants import PARTITION_MAX, PARTITION_MIN


class PartitionOracle(Protocol):
    """Answers whether the current identity is inside a rollout range."""

    def in_partition(self, start: int, end: int) -> bool: ...


class StaticPartition:
    """Oracle for an identity whose partition number is already known."""

    def __init__(self, partition: int) -> None:
        if not PARTITION_MIN <= partition <= PARTITION_MAX:
            raise ValueError(
                f"partition must be between {PARTITION_MIN} and {PARTITION_MAX}, got {partition}"
            )
        self._partition = partition

    @property
    def partition(self) -> int:
        return self._partition

    def in_partition(self, start: int, end: int) -> bool:
        # An inverted range matches nothing.
        return start <= self._partition <= end

    def __repr__(self) -> str:
        return f"StaticPartition({self._partition})"
