"""Host functions that plugins call, each gated by a permission.

Guest memory is a mutable byte buffer (``bytearray`` or writable
``memoryview``), or ``None`` when the plugin exports no memory. Each host
function returns the integer status its plugin-facing contract defines.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, MutableSequence

GuestMemory = MutableSequence[int]

_DENIED_READ = -1
_NO_MEMORY_READ = -2
_HOST_FAILURE_READ = -3
_BUFFER_TOO_SMALL = -4
_OUT_OF_BOUNDS_READ = -5

_OK = 0
_DENIED_EFFECT = 1
_NO_MEMORY_EFFECT = 2
_OUT_OF_BOUNDS_EFFECT = 3
_INVALID_UTF8_EFFECT = 4
_HOST_FAILURE_EFFECT = 2


class PluginPermission(Enum):
    """Capabilities a plugin manifest can request."""

    WRITE_TEXT = "write_text"
    READ_TIME = "read_time"
    READ_STORAGE = "read_storage"
    READ_SETTINGS = "read_settings"
    WRITE_PERFORMANCE_LOG = "write_performance_log"


@dataclass(frozen=True)
class PluginHostContext:
    """Callbacks into the host application; failing callbacks raise."""

    write_text: Callable[[str], None]
    read_time_text: Callable[[], str]
    resolve_storage_root: Callable[[str], Path]
    read_settings_text: Callable[[str], str]
    write_performance_log: Callable[[], None]


@dataclass(frozen=True)
class PluginStoreState:
    """What one plugin instance may do while it runs."""

    plugin_id: str
    permissions: frozenset[PluginPermission]
    host_context: PluginHostContext
    allow_host_reads: bool = True
    allow_host_effects: bool = False

    def may_read(self, permission: PluginPermission) -> bool:
        """Whether reads guarded by ``permission`` are allowed."""
        return self.allow_host_reads and permission in self.permissions

    def may_affect(self, permission: PluginPermission) -> bool:
        """Whether side effects guarded by ``permission`` are allowed."""
        return self.allow_host_effects and permission in self.permissions


def _write_guest_bytes(memory: GuestMemory, ptr: int, capacity: int, data: bytes) -> int:
    """Copy ``data`` into guest memory, returning its length or a status code."""
    start = max(ptr, 0)
    capacity = max(capacity, 0)
    end = start + len(data)
    if len(data) > capacity:
        return _BUFFER_TOO_SMALL
    if end > len(memory):
        return _OUT_OF_BOUNDS_READ
    memory[start:end] = data
    return len(data)


def _read_guest_bytes(memory: GuestMemory, ptr: int, length: int) -> bytes | None:
    """The guest bytes at ``ptr``, or None when the range is out of bounds."""
    start = max(ptr, 0)
    end = start + max(length, 0)
    if end > len(memory):
        return None
    return bytes(memory[start:end])


def _copy_host_text(
    state: PluginStoreState,
    permission: PluginPermission,
    memory: GuestMemory | None,
    ptr: int,
    capacity: int,
    produce: Callable[[], str],
) -> int:
    if not state.may_read(permission):
        return _DENIED_READ
    if memory is None:
        return _NO_MEMORY_READ
    try:
        text = produce()
    except Exception:
        return _HOST_FAILURE_READ
    return _write_guest_bytes(memory, ptr, capacity, text.encode("utf-8"))


def host_read_settings_json(
    state: PluginStoreState, memory: GuestMemory | None, ptr: int, capacity: int
) -> int:
    """Copy the plugin's settings JSON into guest memory."""
    return _copy_host_text(
        state,
        PluginPermission.READ_SETTINGS,
        memory,
        ptr,
        capacity,
        lambda: state.host_context.read_settings_text(state.plugin_id),
    )


def host_read_time_text(
    state: PluginStoreState, memory: GuestMemory | None, ptr: int, capacity: int
) -> int:
    """Copy the host's current date text into guest memory."""
    return _copy_host_text(
        state,
        PluginPermission.READ_TIME,
        memory,
        ptr,
        capacity,
        state.host_context.read_time_text,
    )


def host_write_text(
    state: PluginStoreState, memory: GuestMemory | None, ptr: int, length: int
) -> int:
    """Type the UTF-8 text found in guest memory."""
    if not state.may_affect(PluginPermission.WRITE_TEXT):
        return _DENIED_EFFECT
    if memory is None:
        return _NO_MEMORY_EFFECT
    data = _read_guest_bytes(memory, ptr, length)
    if data is None:
        return _OUT_OF_BOUNDS_EFFECT
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return _INVALID_UTF8_EFFECT
    state.host_context.write_text(text)
    return _OK


def host_write_performance_log(state: PluginStoreState) -> int:
    """Ask the host to log a performance snapshot."""
    if not state.may_affect(PluginPermission.WRITE_PERFORMANCE_LOG):
        return _DENIED_EFFECT
    try:
        state.host_context.write_performance_log()
    except Exception:
        return _HOST_FAILURE_EFFECT
    return _OK