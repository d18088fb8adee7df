# bookmill

A library for working with markdown books. It can:

- load and edit a book's `book.toml` configuration,
- expand include directives inside chapter text,
- run book data through preprocessors, either in Python or as external commands.

## Installation

```
pip install bookmill
```

## Configuration

`bookmill.config.Config` holds `book.toml` in memory. The `book`, `build` and `rust` tables are typed. Every other table is kept in `rest` as plain data, and you reach it with dotted keys.

```python
from bookmill.config import Config

cfg = Config.from_str('''
[book]
title = "My Book"
authors = ["Someone"]

[other-table.foo]
bar = 123
''')

cfg.get("other-table.foo.bar")            # 123
cfg.get("missing.key")                    # None
cfg.set("output.html.theme", "./themes")
cfg.html_config().theme_dir("/books/mine")  # Path("/books/mine/themes")
print(cfg.to_toml())
```

### Loading and saving

- `Config.from_disk(path)` reads a file.
- `Config.from_dict(data)` builds a configuration from data that has already been parsed.
- Invalid TOML, or a value of the wrong type, raises `bookmill.settings.ConfigError` with the message "Invalid configuration file: ...".
- Older files that keep `title`, `authors`, `source` and `description` at the top level still load. In those files, `output.html.destination` becomes `build.build_dir`.
- `to_dict()` returns the configuration as TOML-ready data.
- `to_toml()` returns TOML text with the keys sorted. The `build` and `rust` tables are written only when they differ from their defaults.

### Reading and changing values

- `set(key, value)` writes a dotted key, replacing anything in the way.
  - Keys under `book.` and `build.` update the typed tables.
  - If such a value does not fit the table, the table is left unchanged.
- `get_deserialized(key)` returns a copy of the value, or raises `KeyError` if the key is missing.
- `get_renderer(name)` returns the table at `output.<name>`, or `None`.
- `get_preprocessor(name)` returns the table at `preprocessor.<name>`, or `None`.
- `html_config()` returns a `bookmill.settings.HtmlConfig`. It returns `None` when `[output.html]` is absent or invalid.

### Overrides from the environment

`update_from_env(environ=None)` applies overrides from `MDBOOK_*` variables. It reads `os.environ` unless you pass a mapping.

- `bookmill.config.parse_env` turns a variable name into a key:
  - the prefix is removed,
  - the rest is lower-cased,
  - `__` separates nested keys,
  - `_` becomes `-`.

  So `MDBOOK_BOOK__TITLE` sets `book.title`.
- A value that parses as JSON is used as JSON. Any other value is used as a string.

### Typed tables

The typed tables are dataclasses in `bookmill.settings`:

- `BookConfig`, `BuildConfig` and `RustConfig`.
- `HtmlConfig`, with its parts `Playground`, `Search`, `Print`, `Fold` and `Code`.

Each table has `from_dict`, which reads kebab-case keys and fills in defaults for missing ones. `BookConfig`, `BuildConfig` and `RustConfig` also have `to_dict`.

Other helpers in the module:

- `BookConfig.realized_text_direction()` returns the explicit `text_direction`. When none is set, it derives the direction from `language` using `TextDirection.from_lang_code`.
- `HtmlConfig.uses_smart_punctuation()` is true when either `smart-punctuation` or `curly-quotes` is set.

## Include directives

`bookmill.linkparse.find_links(text)` yields a `Link` for each of these directives:

| Directive | Link type |
| --- | --- |
| `{{#include file.rs}}`, `{{#include file.rs:10:20}}`, `{{#include file.rs:anchor}}` | `Include` |
| `{{#rustdoc_include file.rs:anchor}}` | `RustdocInclude` |
| `{{#playground example.rs editable}}` (the older `#playpen` also works) | `Playground` |
| `{{#title Custom Page Title}}` | `Title` |
| `\{{#include ...}}` | `Escaped` |

Line numbers are one-based in the directive. They are stored in `LineRange` as zero-based values with an exclusive end.

`bookmill.links.replace_all(text, base_dir, source, depth, chapter_title)` expands the directives and returns a pair: the new text and the chapter title.

- Paths are resolved relative to `base_dir`.
- Nested includes are followed up to `MAX_LINK_NESTED_DEPTH` levels.
- A directive whose file cannot be read is left in the text unchanged.
- A title directive is removed and its text becomes the returned title.

`render_link(link, base_dir)` renders a single link.

## Preprocessors

`bookmill.preprocess` provides:

- `Preprocessor`, an abstract base with `run(ctx, book)` and `supports_renderer(name)`.
- `PreprocessorContext`, with `to_dict` and `from_dict` for its JSON form.
- `CmdPreprocessor(name, cmd)`, which runs an external command:
  - `run` writes `[context, book]` to the command's stdin as JSON and reads the processed book back from its stdout.
  - A non-zero exit status raises `PreprocessorError`, and so does output that is not JSON.
  - `supports_renderer(name)` runs `<cmd> supports <name>`. A zero exit status means the renderer is supported.
  - `CmdPreprocessor.parse_input(stream)` is the matching reader for a preprocessor program's side.
- `is_readme_file(path)`, which reports whether a file's stem is `readme` in any letter case.

## What is not included

This package has no command-line tool and no renderers. It does not read a book's chapters from disk or parse `SUMMARY.md`. The book given to a preprocessor is plain JSON-compatible data. No preprocessor that works on chapters is built in: neither include expansion nor README-to-index renaming runs over a whole book. `replace_all` and `is_readme_file` are the building blocks for those steps.

## Tests

```
pip install -e ".[test]"
pytest
```