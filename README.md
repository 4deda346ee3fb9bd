# maltose

Building blocks for Python services:

- `maltose.mclient` — chainable HTTP requests on top of `requests`, with
  middleware, retries with exponential backoff and jitter, a token-bucket
  rate limiter, JSON bodies and JSON result parsing.
- `maltose.container.var` — `Var`, a value wrapper with loose conversions
  to strings, numbers, booleans, datetimes and dicts.
- `maltose.internal.intlog` — diagnostic output used by the HTTP code.

## Installation

```
pip install maltose
```

For running the test suite:

```
pip install "maltose[test]"
pytest
```

## HTTP requests

`maltose.mclient.request.Request` is built up by chained calls and then
sent. A request made without arguments is sent directly with `requests`
and a 30 second timeout.

```python
from maltose.mclient.request import Request

resp = (
    Request()
    .set_header("Accept", "application/json")
    .set_query("page", "1")
    .get("https://api.example.com/users")
)

if resp.is_success():
    print(resp.status_code, resp.read_all_string())
```

`get`, `post`, `put`, `delete`, `patch`, `head` and `options` set the method
and send; `send(url)` sends with the method set by `method(...)`, or GET.
Query and form parameters are URL-encoded in key order; form parameters
become the body with `Content-Type: application/x-www-form-urlencoded`.

### JSON bodies and results

`set_body` sends text and bytes as they are and reads file-like objects.
Anything else is encoded as JSON (dataclasses included) and sent with
`Content-Type: application/json` unless a content type was already set.

A container given with `set_result` is filled from the JSON body of a 2xx
response; one given with `set_error` is filled from any other status.
Dicts are updated, lists replaced, and dataclasses or plain objects get
matching attributes set (keys are matched case-insensitively).

```python
result = {}
Request().set_body({"name": "John Doe", "email": "john@example.com"}) \
    .set_result(result) \
    .post("https://api.example.com/users")
print(result.get("id"))
```

### Responses

`maltose.mclient.response.Response` wraps a `requests.Response`:

- `status_code`, `headers`, `content_length`, `is_success()`
- `read_all()` / `read_all_string()` — the body, readable any number of times
- `parse(target)` — decodes the JSON body into `target` and returns the
  decoded value
- `get_cookie(key)`, `get_cookies()`, `get_cookie_map()` (a copy)
- `set_body_content(content)`, `close()`

### Retries

`maltose.mclient.retry` holds `RetryConfig` (intervals in seconds),
`default_retry_config()` (three retries from one second, doubling up to
thirty, 10% jitter), `should_retry` and `calculate_retry_delay`.

```python
from maltose.mclient.retry import default_retry_config

resp = Request().set_retry(default_retry_config()).get("https://api.example.com/users")

# Same backoff and jitter, custom count and base interval.
resp = Request().set_retry_simple(5, 0.5).get("https://api.example.com/users")

# Retry only on 429; the condition gets the raw response and the exception.
resp = (
    Request()
    .set_retry_simple(3, 0.1)
    .set_retry_condition(lambda raw, err: raw is not None and raw.status_code == 429)
    .get("https://api.example.com/users")
)
```

Without a condition, a request is retried on exceptions, on any 5xx status
and on 429. The send methods wait the base interval between attempts.
`do()` sends to the URL set with `url(...)` and waits with exponential
backoff and jitter between rounds; it raises `ValueError` if no URL is set.

### Middleware

A middleware takes the next handler and returns a handler; a handler takes
a request and returns a response. Middlewares added with `use` run in the
order they were added.

```python
def auth(next_handler):
    def handler(req):
        req.set_header("Authorization", "Bearer token")
        return next_handler(req)
    return handler

resp = Request().use(auth).get("https://api.example.com/users")
```

### Rate limiting

```python
from maltose.mclient.ratelimit import RateLimitConfig, middleware_rate_limit

limit = middleware_rate_limit(RateLimitConfig(requests_per_second=2, burst=1))
for _ in range(3):
    Request().use(limit).get("https://api.example.com/users")
```

Rates and bursts that are not positive fall back to 100 per second and 10.
`skip` exempts a request, `timeout` bounds the wait for a token, and when the
wait times out `error_handler` supplies a response or `RateLimitError` is
raised. `TokenBucketLimiter(rate, bucket_size)` can also be used alone with
`try_acquire()` and `wait(timeout)`, which raises `TimeoutError`.

## Var

```python
from maltose.container.var import Var, to_string

v = Var("42")
assert v.to_int() == 42
assert not v.is_empty()

assert Var('{"a": 1}').to_map() == {"a": 1}
assert to_string(1.5) == "1.5"
```

`Var(value, safe=True)` guards `set` and `unmarshal_json` with a lock.

## Diagnostic output

Retries, rate-limit decisions and response parsing print lines marked
`[INTE]` to standard output. Set `maltose.internal.intlog.DEBUG = False`
to silence them.

## What is not included

There is no shared client object: base URLs, default headers, cookies,
TLS certificates, redirect limits and basic authentication are not kept
across requests, and headers must be set on each request. There are no
error-code types or coded errors, and no named-instance container.