"""Read-only access to a plugin's private storage directory."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path

from omnipalette.capabilities import GuestMemory, PluginPermission, PluginStoreState

_DENIED = -1
_NO_MEMORY = -2
_HOST_FAILURE = -3
_BUFFER_TOO_SMALL = -4
_OUT_OF_BOUNDS = -5

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


class StorageError(ValueError):
    """A storage path was rejected or a storage file could not be read."""


def list_storage_entries_json(root: str | Path) -> str:
    """List every regular file below ``root`` as a sorted JSON array of relative paths."""
    root = Path(root)
    if not root.exists():
        return "[]"
    entries = sorted(_collect_entries(root, ()))
    return json.dumps(entries, separators=(",", ":"), ensure_ascii=False)


def _collect_entries(root: Path, relative: tuple[str, ...]):
    folder = root.joinpath(*relative)
    try:
        with os.scandir(folder) as listing:
            children = list(listing)
    except OSError as err:
        raise StorageError(f"Could not read storage directory {folder}: {err}") from err

    for child in children:
        next_relative = (*relative, child.name)
        try:
            is_dir = child.is_dir(follow_symlinks=False)
            is_file = child.is_file(follow_symlinks=False)
        except OSError as err:
            raise StorageError(f"Could not read storage entry type: {err}") from err

        if is_dir:
            yield from _collect_entries(root, next_relative)
            continue
        if not is_file:
            continue

        text = _storage_string(next_relative)
        if text is not None:
            yield text


def _storage_string(parts: tuple[str, ...]) -> str | None:
    try:
        for part in parts:
            part.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return "/".join(parts)


def _normalize_relative_path(relative_path: str) -> Path:
    if not relative_path.strip():
        raise StorageError("Storage path must not be empty")

    outside = StorageError(
        f"Storage path must stay within the plugin root: {relative_path}"
    )
    if relative_path.startswith(("/", "\\")) or _DRIVE_PREFIX.match(relative_path):
        raise outside

    segments: list[str] = []
    for segment in re.split(r"[/\\]", relative_path):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise outside
        segments.append(segment)

    if not segments:
        raise StorageError("Storage path must contain at least one segment")
    return Path(*segments)


def read_storage_text(root: str | Path, relative_path: str) -> str:
    """Read a UTF-8 text file at a path that must stay inside ``root``."""
    path = Path(root) / _normalize_relative_path(relative_path)
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise StorageError(f"Could not read storage file {path}: {err}") from err


def _copy_to_guest(memory: GuestMemory, ptr: int, capacity: int, data: bytes) -> int:
    start = max(ptr, 0)
    end = start + len(data)
    if len(data) > max(capacity, 0):
        return _BUFFER_TOO_SMALL
    if end > len(memory):
        return _OUT_OF_BOUNDS
    memory[start:end] = data
    return len(data)


def host_list_storage_entries_json(
    state: PluginStoreState, memory: GuestMemory | None, ptr: int, capacity: int
) -> int:
    """Copy the JSON listing of the plugin's storage files into guest memory."""
    if not state.may_read(PluginPermission.READ_STORAGE):
        return _DENIED
    if memory is None:
        return _NO_MEMORY
    try:
        root = state.host_context.resolve_storage_root(state.plugin_id)
        text = list_storage_entries_json(root)
    except Exception:
        return _HOST_FAILURE
    return _copy_to_guest(memory, ptr, capacity, text.encode("utf-8"))


def host_read_storage_text(
    state: PluginStoreState,
    memory: GuestMemory | None,
    path_ptr: int,
    path_len: int,
    ptr: int,
    capacity: int,
) -> int:
    """Copy a storage file named by a guest-memory path into guest memory."""
    if not state.may_read(PluginPermission.READ_STORAGE):
        return _DENIED
    if memory is None:
        return _NO_MEMORY

    path_start = max(path_ptr, 0)
    path_end = path_start + max(path_len, 0)
    if path_end > len(memory):
        return _HOST_FAILURE
    try:
        path_text = bytes(memory[path_start:path_end]).decode("utf-8")
    except UnicodeDecodeError:
        return _HOST_FAILURE

    try:
        root = state.host_context.resolve_storage_root(state.plugin_id)
        text = read_storage_text(root, path_text)
    except Exception:
        return _HOST_FAILURE
    return _copy_to_guest(memory, ptr, capacity, text.encode("utf-8"))