# omnipalette

Building blocks for a keyboard-driven command palette, in plain Python with
no third-party dependencies.

It provides:

- **Fuzzy search** (`omnipalette.search`): `prepare_query`, `score_fuzzy`
  and `get_score` rank palette entries such as `"Chrome: New tab"` against
  what the user typed. A match scores higher when its characters are
  consecutive, match case exactly, or begin a word (after `/`, `\`, `_`,
  `-`, `.`, space, quote or `:`) or a camel-case boundary. A whole-word
  prefix of three or more characters may outscore the character-by-character
  match. With several words in a query, every word must match. A query
  wrapped in double quotes must match as one contiguous, case-insensitive run.
- **Plugin host functions** (`omnipalette.capabilities`): the functions a
  plugin calls to type text (`host_write_text`), read the current date text
  (`host_read_time_text`), read its settings JSON
  (`host_read_settings_json`) or ask for a performance snapshot
  (`host_write_performance_log`). Each is gated by a `PluginPermission` held
  in a `PluginStoreState`, and reaches the host application through the
  callbacks of a `PluginHostContext`.
- **Plugin storage** (`omnipalette.storage`): read-only access to a
  plugin's private directory, both as plain functions and as the host
  functions `host_list_storage_entries_json` and `host_read_storage_text`.

## Installation

```
pip install omnipalette
```

## Fuzzy search

```python
from omnipalette.search import prepare_query, score_fuzzy

query = prepare_query("nt")
for name in ["Chrome: New tab", "Notable", "Zoom in"]:
    result = score_fuzzy(name, query)
    if result is not None:
        print(name, result.score, [(r.start, r.end) for r in result.ranges])
```

`score_fuzzy` returns `None` when the target does not match, and otherwise a
`MatchResult` with `score`, `ranges`, `is_prefix` and `span`. Each
`MatchRange` is a half-open range of character indices, so
`name[r.start:r.end]` is the matched text; adjacent matched characters are
merged into one range. Prepare a query once and score it against many
targets; `get_score(target, query_text)` does both steps at once.

## Host functions

Guest memory is any mutable byte sequence, such as a `bytearray`; pass
`None` when the plugin exports no memory.

```python
from pathlib import Path

from omnipalette.capabilities import (
    PluginHostContext,
    PluginPermission,
    PluginStoreState,
    host_write_text,
)

typed = []
context = PluginHostContext(
    write_text=typed.append,
    read_time_text=lambda: "6 Apr",
    resolve_storage_root=lambda plugin_id: Path("storage") / plugin_id,
    read_settings_text=lambda plugin_id: "{}",
    write_performance_log=lambda: None,
)
state = PluginStoreState(
    plugin_id="auto_typer",
    permissions=frozenset({PluginPermission.WRITE_TEXT}),
    host_context=context,
    allow_host_effects=True,
)

memory = bytearray(64)
memory[0:11] = b"hello world"
print(host_write_text(state, memory, 0, 11), typed)  # 0 ['hello world']
```

The read functions copy UTF-8 text into guest memory at `ptr` and return its
length in bytes, or a negative status: `-1` permission denied (or reads not
allowed), `-2` no memory, `-3` the host callback or file access failed, `-4`
the text is longer than `capacity`, `-5` the text would run past the end of
memory.

`host_write_text` returns `0` on success, `1` when denied (or side effects
not allowed), `2` with no memory, `3` when the range is out of bounds and `4`
when the bytes are not valid UTF-8. `host_write_performance_log` returns `0`,
`1` when denied, or `2` when the host callback raised.

## Plugin storage

```python
from omnipalette.storage import StorageError, list_storage_entries_json, read_storage_text

print(list_storage_entries_json("storage/auto_typer"))
# ["scripts/alpha.json","scripts/nested/beta.json"]

print(read_storage_text("storage/auto_typer", "scripts/alpha.json"))

try:
    read_storage_text("storage/auto_typer", "../secret.txt")
except StorageError as err:
    print(err)  # Storage path must stay within the plugin root: ../secret.txt
```

`list_storage_entries_json` lists every regular file under the root,
recursively, as a sorted compact JSON array of `/`-separated relative paths,
and gives `[]` when the root does not exist. `read_storage_text` rejects
empty paths and paths that are absolute, start with a drive letter or contain
`..`, and raises `StorageError` when the file cannot be read or is not UTF-8.

## What this package does not do

It is a library only. It has no command-line program and no palette window,
does not listen for or send keystrokes, and does not know which application
has focus. It does not load plugin manifests or command lists, and it does
not run plugin code: a caller that runs a plugin supplies the guest memory
and calls the host functions itself.

## Running the tests

```
pip install -e ".[test]"
pytest
```