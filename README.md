# wotop

Reusable pieces for backend services written in a clean-architecture style.
It is a library: import the modules you need.

## Installation

```
pip install wotop
```

To run the test suite, install the test extra and run pytest:

```
pip install "wotop[test]"
pytest
```

## Modules

### `wotop.application`

- `ApplicationData(app_name, app_instance_id, start_time)` is a frozen
  dataclass describing a running instance. `to_dict()` returns its fields
  as a dictionary.
- `new_application_data(app_name)` fills in a random 4-character instance id
  and the current local time formatted as `YYYY-MM-DD HH:MM:SS`.
- `generate_id(length)` returns a random string of ASCII letters and digits;
  a length below 1 raises `ValueError`.

### `wotop.registry`

- `UsecaseRegistry` holds one use case per package. `add_usecase(*usecases)`
  registers each under its package (a later one replaces an earlier one);
  `get_usecase(type_or_object)` returns the one registered for the package
  of its argument, or raises `UsecaseNotRegisteredError` (a `LookupError`).
- `package_of(obj)` gives the key used: the last component of the package
  that holds the defining module, or the module name itself for a
  top-level module.

### `wotop.logger`

- `Logger` is the abstract interface: `info`, `warning` and `error`, each
  taking `(ctx, message, *args)`. Messages are formatted with `%` when
  arguments are given.
- `set_trace_id(ctx, trace_id)` returns a new context dictionary holding the
  trace id; `get_trace_id(ctx)` reads it back, defaulting to
  `"0000000000000000"`.
- `SimpleJSONLogger(app_data, stage, stream=None)` writes one line per entry
  (`LEVEL trace-id message location`) to `stream` or standard output. Info
  and warning lines appear only when the stage is `development` (case and
  surrounding spaces ignored); errors always appear. `json_record(severity,
  location, message, trace_id)` builds a JSON record with the application
  name, instance id, start time, severity, message, location and time.
- `to_json_string(obj)` gives compact JSON (dataclasses are converted first)
  or `""` when the object cannot be serialised; `caller_location(skip)`
  returns `file.function:line` for a frame up the stack.

### `wotop.graylog`

- `GelfWriter(address, facility=None, host=None, compress=True)` sends each
  `write(record)` as a GELF 1.1 message over UDP to `host:port`, gzip
  compressed by default and split into chunks when larger than one datagram.
- `GraylogLogger(graylog_address, stage, writer=None)` implements `Logger`,
  writing JSON records with `level`, `time`, `caller` and `message`.
  `sync()` raises `ValueError` once the logger is closed; `close()` closes
  the writer. Both classes are context managers.

### `wotop.errors`

- `ErrorType` enumerates the token errors, such as
  `ErrorType.UNAUTHORIZED == "ER0001 unauthorized"`.
- `AppError(error_type)` is the exception that carries one; `code()` returns
  the code (`"ER0001"`) and `message` the description.

### `wotop.mailer`

- `Message` holds `to`, `subject`, `from_address`, `from_name`,
  `attachments` (file paths), `data` and `data_map`. Templates are rendered
  with `data_map`, or with `{"message": data}` when it is not set.
- `Mailer(domain, host, port, username, password, encryption, from_address,
  from_name)`:
  - `send_smtp_message(template_to_render, template_name, msg)` renders
    `<template_to_render>.html.gohtml` and `<template_to_render>.plain.gohtml`
    with Jinja2, fills in the sender from the mailer when the message has
    none, attaches the files and sends the mail with a 10-second timeout.
  - `template_name` is either a block defined in the template file or the
    file name itself (render the whole file); anything else raises
    `ValueError`.
  - `build_html_message` and `build_plain_text_message` render one template
    without sending.
- `encryption_from_name(name)` maps `"ssl"` to `Encryption.SSL_TLS`,
  `"none"` and `""` to `Encryption.NONE`, and everything else (including
  `"tls"`) to `Encryption.STARTTLS`.
- `inline_css(html)` moves `<style>` rules onto matching elements' `style`
  attributes, honouring specificity and `!important`. At-rules and selectors
  with pseudo-classes stay in the `<style>` block.

### `wotop.token_store`

- `RedisTokenRepository(client, refresh_prefix="refresh_tokens",
  blocked_prefix="blocked_tokens", clock=time.time)` works with any
  redis-py style client; `RedisTokenRepository.from_url(url)` connects one.
- Refresh tokens are stored as `<prefix>:<jti>` with the subject as value:
  `store_refresh_token(sub, jti)`, `delete_refresh_token(jti)`,
  `find_refresh_token(jti)` (raises `AppError` with
  `ErrorType.TOKEN_ALREADY_REFRESHED` when missing) and
  `find_all_refresh_tokens()`, which returns `RefreshToken(subject, jti)` items.
- Blocked tokens are stored as `<prefix>:<sub>:<expires_at>`:
  `store_blocked_token(sub, token, expires_at)` and
  `find_all_blocked_tokens()`, which deletes expired entries and returns the
  tokens still in force.

### `wotop.centrifugo`

- `CentrifugoClient(base_url, api_key)` posts to `<base_url>/api`. It has
  `publish_data`, `broadcast`, `channels`, `disconnect`, `history`,
  `history_remove`, `info_node`, `presence`, `presence_stats` and
  `unsubscribe`; each returns the reply's `result` dictionary (or nothing)
  and raises `CentrifugoError` on an API error or a non-200 status.
- `pipe()` returns a `Pipe`; queue commands with its `add_*` methods and
  send them in one request with `send_pipe(pipe)`, which returns one reply
  per command and empties the pipe.
- `set_http_client(session)` replaces the `requests.Session` used.
- `CentrifugeAction(action, payload)` is a small dataclass for action
  messages, with `to_dict()`.

## Examples

```python
from wotop.application import new_application_data
from wotop.logger import SimpleJSONLogger, set_trace_id

app = new_application_data("orders")
log = SimpleJSONLogger(app, "development")
ctx = set_trace_id({}, "abcd1234abcd1234")
log.info(ctx, "started %s", app.app_name)
```

Sending a message:

```python
from wotop.mailer import Mailer, Message

password = "password"
mailer = Mailer(
    domain="example.com",
    host="localhost",
    port=1025,
    username="user",
    password=password,
    encryption="none",
    from_address="noreply@example.com",
    from_name="Orders",
)
mailer.send_smtp_message(
    "templates/welcome",
    "body",
    Message(to="someone@example.com", subject="Welcome", data="Hello"),
)
```

Publishing to Centrifugo:

```python
from wotop.centrifugo import CentrifugoClient

client = CentrifugoClient("http://localhost:8000", "placeholder")
client.publish_data("news", b'{"text": "hi"}')
```

## What it does not do

- There is no command-line tool and no code generator.
- There is no HTTP server, router, middleware or metrics endpoint; the
  registry only stores use cases for code that serves requests.
- Tokens are not issued, signed or verified here: `wotop.token_store` only
  keeps refresh and blocked tokens, and `wotop.errors` only names the errors.
- There is no message-queue consumer.