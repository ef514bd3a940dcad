# kitbox

A small set of everyday building blocks for Python applications. It uses
only the standard library.

- **`kitbox.nonce`**: cryptographically secure random bytes (`generate_nonce`).
- **`kitbox.snowflake`**: 64-bit Snowflake IDs (`Node`, `new_node`, `ID`) with
  decimal, binary, z-base-32, base36, base58, base64, big-endian byte and JSON
  encodings, and the matching `parse_*` functions.
- **`kitbox.cache`**: a thread-safe in-memory cache (`Cache`, `new_cache`) with
  per-entry time to live and least-frequently-used eviction, and a
  `TypedCache` view that only stores and returns values of one type.
- **`kitbox.cache_global`**: a process-wide default cache behind module functions.
- **`kitbox.murmur3`**: the x64 128-bit MurmurHash3 (`sum128`).
- **`kitbox.bloom`**: Bloom filters sized from an expected element count and a
  false positive rate.
- **`kitbox.bloom_store`**: the bit stores behind a Bloom filter: `MemoryStore`
  (an in-process bitmap) and `RedisStore` (a bitmap in Redis).

## Installation

```
pip install kitbox
```

## Examples

### Nonces

```python
from kitbox.nonce import generate_nonce

nonce = generate_nonce(12)   # 12 random bytes; a negative length raises ValueError
```

### Snowflake IDs

```python
from kitbox.snowflake import new_node, parse_base58, parse_json

node = new_node(1)            # node numbers run from 0 to 1023 by default
ident = node.generate()

text = ident.base58()
assert parse_base58(text) == ident
assert parse_json(ident.marshal_json()) == ident

ident.time()   # millisecond Unix timestamp
ident.node()   # 1
ident.step()   # sequence number within the millisecond
```

`new_node` also takes `epoch`, `node_bits` and `step_bits`; node and step bits
may share at most 22 bits. Invalid input to the parsers raises `ValueError`
(`InvalidBase32Error`, `InvalidBase58Error` and `JSONSyntaxError` are
subclasses of it).

### Cache

Times to live are in seconds.

```python
from kitbox.cache import new_cache, as_typed_cache, with_max_cost, NO_EXPIRY

with new_cache(with_max_cost(10_000)) as cache:
    cache.set("answer", 42)
    cache.set_with_ttl("session", "abc", 1.5)

    value, found = cache.get("answer")
    value, found, remaining = cache.get_with_ttl("answer")
    assert remaining == NO_EXPIRY          # -1: never expires

    names = as_typed_cache(cache, str)
    names.set("user:1", "alice")
    names.get("answer")                    # (None, False): not a str
```

Each entry costs 1, so `max_cost` is the number of entries kept. Setting a
value of the wrong type through a `TypedCache` raises `TypeError`. After
`close()` writes return `False` and reads find nothing.

The process-wide cache:

```python
from kitbox import cache_global

cache_global.init_cache()      # only the first call creates the cache
cache_global.set("k", "v")
print(cache_global.get("k"))   # ('v', True)
cache_global.reset_cache()     # close it and allow init_cache to run again
```

Before `init_cache` the module functions find nothing and `set` returns `False`.

### Bloom filters

```python
from kitbox.bloom import new_bloom, with_name, with_expected_elements, with_false_positive_rate

bloom = new_bloom(
    with_name("visitors"),
    with_expected_elements(100_000),
    with_false_positive_rate(0.01),
)
bloom.put("alice")
assert bloom.contain("alice")

bloom.group_put("2024-06", "bob")
bloom.group_contain("2024-06", "bob")   # True
```

An empty name, a name listed in `kitbox.bloom.reserved_names`, or a false
positive rate outside 0 to 1 raises a `BloomError` subclass.

Without `with_store` or `with_redis`, filters share one 128 MiB `MemoryStore`,
allocated on first use. A `MemoryStore` keeps a single bitmap: filter names and
groups do not separate its bits. `RedisStore` keeps one Redis key per filter
or group (`kit:bloom:<name>` or `kit:bloom:<name>:<group>`).

`with_redis(client)` takes any client object that offers
`script_load(script)` and `evalsha(sha, numkeys, *keys_and_args)`, as
redis-py does. Errors from the client propagate.

## What it does not do

- It does not bring a Redis client and does not connect to Redis on its own.
- The cache lives in process memory only. Nothing is persisted or shared
  between processes.

## Running the tests

```
pip install kitbox[test]
pytest
```