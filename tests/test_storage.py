import json

import pytest

from omnipalette.capabilities import PluginHostContext, PluginPermission, PluginStoreState
from omnipalette.storage import (
    StorageError,
    host_list_storage_entries_json,
    host_read_storage_text,
    list_storage_entries_json,
    read_storage_text,
)


def _fail(*_args):
    raise RuntimeError("unavailable")


def _state(root, permissions=(PluginPermission.READ_STORAGE,), reads=True, resolve=None):
    context = PluginHostContext(
        write_text=lambda text: None,
        read_time_text=lambda: "6 Apr",
        resolve_storage_root=resolve or (lambda plugin_id: root / plugin_id),
        read_settings_text=lambda plugin_id: "{}",
        write_performance_log=lambda: None,
    )
    return PluginStoreState(
        plugin_id="demo",
        permissions=frozenset(permissions),
        host_context=context,
        allow_host_reads=reads,
    )


def test_missing_storage_root_returns_empty_json_array(tmp_path):
    assert list_storage_entries_json(tmp_path / "missing") == "[]"


def test_lists_files_recursively_as_relative_paths(tmp_path):
    (tmp_path / "scripts" / "nested").mkdir(parents=True)
    (tmp_path / "scripts" / "alpha.json").write_text("{}")
    (tmp_path / "scripts" / "nested" / "beta.json").write_text("{}")

    assert (
        list_storage_entries_json(tmp_path)
        == '["scripts/alpha.json","scripts/nested/beta.json"]'
    )


def test_listing_is_sorted(tmp_path):
    for name in ("c.txt", "a.txt", "b.txt"):
        (tmp_path / name).write_text("x")
    assert json.loads(list_storage_entries_json(tmp_path)) == ["a.txt", "b.txt", "c.txt"]


def test_empty_directories_are_not_listed(tmp_path):
    (tmp_path / "empty").mkdir()
    assert list_storage_entries_json(tmp_path) == "[]"


def test_reads_text_files_from_relative_storage_paths(tmp_path):
    (tmp_path / "scripts").mkdir()
    (tmp_path / "scripts" / "alpha.json").write_text('{"ok":true}')

    assert read_storage_text(tmp_path, "scripts/alpha.json") == '{"ok":true}'


def test_current_dir_segments_are_ignored(tmp_path):
    (tmp_path / "a.txt").write_text("hello")
    assert read_storage_text(tmp_path, "./a.txt") == "hello"


def test_rejects_parent_directory_traversal(tmp_path):
    with pytest.raises(StorageError, match="within the plugin root"):
        read_storage_text(tmp_path, "../secret.txt")


def test_rejects_absolute_storage_paths(tmp_path):
    with pytest.raises(StorageError, match="within the plugin root"):
        read_storage_text(tmp_path, "C:/secret.txt")


def test_rejects_rooted_paths(tmp_path):
    with pytest.raises(StorageError, match="within the plugin root"):
        read_storage_text(tmp_path, "/etc/hosts")


def test_rejects_empty_path(tmp_path):
    with pytest.raises(StorageError, match="must not be empty"):
        read_storage_text(tmp_path, "   ")


def test_rejects_path_without_segments(tmp_path):
    with pytest.raises(StorageError, match="at least one segment"):
        read_storage_text(tmp_path, "./.")


def test_missing_file_raises(tmp_path):
    with pytest.raises(StorageError, match="Could not read storage file"):
        read_storage_text(tmp_path, "nothing.txt")


def test_host_list_copies_json_into_memory(tmp_path):
    (tmp_path / "demo").mkdir()
    (tmp_path / "demo" / "a.json").write_text("{}")
    memory = bytearray(64)

    written = host_list_storage_entries_json(_state(tmp_path), memory, 4, 60)

    expected = b'["a.json"]'
    assert written == len(expected)
    assert bytes(memory[4 : 4 + written]) == expected


def test_host_list_denied_without_permission(tmp_path):
    assert host_list_storage_entries_json(_state(tmp_path, permissions=()), bytearray(8), 0, 8) == -1


def test_host_list_denied_when_reads_disabled(tmp_path):
    assert host_list_storage_entries_json(_state(tmp_path, reads=False), bytearray(8), 0, 8) == -1


def test_host_list_without_memory(tmp_path):
    assert host_list_storage_entries_json(_state(tmp_path), None, 0, 8) == -2


def test_host_list_root_failure(tmp_path):
    assert host_list_storage_entries_json(_state(tmp_path, resolve=_fail), bytearray(8), 0, 8) == -3


def test_host_list_buffer_too_small(tmp_path):
    assert host_list_storage_entries_json(_state(tmp_path), bytearray(8), 0, 1) == -4


def test_host_list_out_of_bounds(tmp_path):
    assert host_list_storage_entries_json(_state(tmp_path), bytearray(4), 3, 10) == -5


def _memory_with_path(path_text, size=64):
    memory = bytearray(size)
    data = path_text.encode("utf-8")
    memory[0 : len(data)] = data
    return memory, len(data)


def test_host_read_storage_text_copies_file(tmp_path):
    (tmp_path / "demo" / "scripts").mkdir(parents=True)
    (tmp_path / "demo" / "scripts" / "demo.json").write_text("hi")
    memory, length = _memory_with_path("scripts/demo.json")

    written = host_read_storage_text(_state(tmp_path), memory, 0, length, 32, 32)

    assert written == 2
    assert bytes(memory[32:34]) == b"hi"


def test_host_read_storage_text_rejects_traversal(tmp_path):
    memory, length = _memory_with_path("../x.txt")
    assert host_read_storage_text(_state(tmp_path), memory, 0, length, 32, 32) == -3


def test_host_read_storage_text_path_out_of_bounds(tmp_path):
    assert host_read_storage_text(_state(tmp_path), bytearray(8), 4, 10, 0, 8) == -3


def test_host_read_storage_text_invalid_utf8_path(tmp_path):
    memory = bytearray(b"\xff\xfe" + bytes(30))
    assert host_read_storage_text(_state(tmp_path), memory, 0, 2, 8, 8) == -3


def test_host_read_storage_text_denied(tmp_path):
    memory, length = _memory_with_path("a.txt")
    assert host_read_storage_text(_state(tmp_path, permissions=()), memory, 0, length, 32, 32) == -1


def test_host_read_storage_text_without_memory(tmp_path):
    assert host_read_storage_text(_state(tmp_path), None, 0, 1, 0, 1) == -2


def test_host_read_storage_text_buffer_too_small(tmp_path):
    (tmp_path / "demo").mkdir()
    (tmp_path / "demo" / "a.txt").write_text("hello")
    memory, length = _memory_with_path("a.txt")
    assert host_read_storage_text(_state(tmp_path), memory, 0, length, 32, 3) == -4