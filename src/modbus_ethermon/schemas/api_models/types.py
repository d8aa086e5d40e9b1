"""Typed helpers for API models."""

from typing import List, Optional, Union

from typing_extensions import TypeAlias, TypedDict


class PollResult(TypedDict):
    """Result of one poll cycle of a single device."""
    device_id: str
    success: bool
    polls: int
    errors: int
    skipped: int
    archived: bool
    error: Optional[str]


ModbusRegisterValues: TypeAlias = List[Union[int, bool]]
