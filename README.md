# woaa

Building blocks for an admin server that manages WeChat official accounts.
The package holds the parts of such a server that need no web framework or
database driver. They are plain functions and classes that take and return
dictionaries, dataclasses and strings. It has no runtime dependencies beyond
the standard library.

## What is in it

- **Logging**: `woaa.logfmt` defines the `Level` enum (`TRACE`, `DEBUG`,
  `INFO`, `WARN`, `ERROR`, `CRIT`) and the formatting of messages and values
  for terminal output. `woaa.handlers` provides `TerminalHandler`,
  `JSONHandler`, `LogfmtHandler` and `DiscardHandler`, all of which accept
  `Record` objects. `woaa.logger` provides `Logger` and a process-wide root
  logger (`set_default`, `root`, `info`, `warn`, ...).
- **Request log sink**: `woaa.mongolog.MongoLogSink` buffers JSON log lines
  and writes them to a collection with `insert_many`. It writes once the
  buffer holds `max_batch_size` entries, or every `flush_interval` seconds
  after `start()`.
- **Caching**: `woaa.lru.LRUCache` is a thread-safe least-recently-used cache
  that builds missing entries with a creator function.
- **Models**: `woaa.models` holds `SessionAppidInfo`, `RequestLogInfo`,
  `AutoReplyData`, `AutoReplyMessage` and `AutoReplyArticle`, each with
  `from_dict` / `to_dict`.
- **Request guards**: `woaa.access` has the `{code, message, data}` response
  envelopes (`ok_response`, `fail_response`, `ApiError`), the login and appid
  checks (`check_login`, `check_appid`), the session user (`current_user`,
  `is_admin`), the request-log skip rule (`skip_request_log`) and the answer
  for unknown routes (`no_route_response`).
- **Auto replies**: `woaa.autoreply` validates the save form
  (`AutoReplySaveForm`) and builds the query and update documents for it.
- **Materials**: `woaa.material` parses the material forms and builds the
  queries, upserts and list items. Temporary material expires 72 hours after
  it is created.
- **QR codes and request logs**: `woaa.queries` has `QrcodeCreateForm`,
  `qrcode_list_query` and `request_log_query`. The two query functions return
  a `ListQuery` of filter, skip, limit and sort.
- **Menus**: `woaa.menusync` turns a menu fetched from the platform into one
  that can be published, together with its click replies (`sync_menu`).
  `woaa.menuform` parses and normalises locally edited menus and re-keys
  conditional menus once they are saved.
- **Dispatch**: `woaa.dispatch.ClientRegistry` keeps per-account API clients
  and message handlers in LRU caches. `deliver_messages` sends the first
  message as a passive reply when its type allows that, and sends the rest
  through the reply controller's send methods.

## Examples

### Logging to the terminal

```python
import sys

from woaa.handlers import TerminalHandler
from woaa.logfmt import Level
from woaa.logger import Logger, info, set_default

set_default(Logger(TerminalHandler(sys.stderr, Level.DEBUG, True)))
info("starting run", "listen", ":8080")
```

Key/value pairs follow the message as alternating arguments. If a call
passes an odd number of them, the logger adds a `None` value and a note under
the `LOG_ERROR` key. `crit` logs and then raises `SystemExit(1)`.

### Caching per-account clients

```python
from woaa.lru import LRUCache

cache = LRUCache(2, lambda appid: {"appid": appid})
client = cache.get("wx0000000000000001")
assert "wx0000000000000001" in cache
```

When the cache is full, it evicts the least recently used entry before it
inserts a new one. If the creator raises, the exception propagates and
nothing is cached.

### Guarding a request

```python
from woaa.access import ApiError, check_appid, check_login
from woaa.models import SessionAppidInfo

session = {"login": 1, "appid": SessionAppidInfo(app_id="wx0000000000000001")}
check_login("/api/menu/get", session)    # True
check_appid("/api/menu/get", session)    # "wx0000000000000001"

try:
    check_login("/api/menu/get", {})
except ApiError as exc:
    body = exc.to_response()             # {"code": 1, "message": "no login"}
```

### Menu key generation

```python
from woaa.menusync import make_key_generator

keys = {"key_1"}
next_key = make_key_generator("key_", 0, keys)
next_key()  # "key_2", since "key_1" is already taken
```

## What it does not do

The package has no HTTP server, no routes and no command to start one. It
does not talk to a database. Query and update documents are returned to the
caller, and `MongoLogSink` only calls `insert_many` on whatever collection its
getter returns. It has no client for the WeChat platform API and no message
handler of its own. `ClientRegistry` builds these with factories that the
caller supplies, and the reply functions call methods on a reply controller
that the caller supplies. It does not store uploaded or downloaded files,
build public URLs, or manage account records.

## Running the tests

Install the `test` extra and run `pytest` from the project root.