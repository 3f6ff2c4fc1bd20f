# pgproto

Building blocks for talking to a PostgreSQL server at the wire level, with
no dependencies beyond the standard library. The package assumes the
server's `client_encoding` is `UTF8`.

## What is in it

- `pgproto.frontend`: encoders for messages the client sends. `bind`,
  `cancel_request`, `close`, `copy_done`, `copy_fail`, `describe`,
  `execute`, `parse`, `password_message`, `query`, `sasl_initial_response`,
  `sasl_response`, `ssl_request`, `startup_message`, `sync` and `terminate`
  each return the complete message as `bytes`; `CopyData(data).encode()`
  does the same for a chunk of COPY data.
- `pgproto.auth`: `md5_hash(username, password, salt)` builds the reply to
  an MD5 password request (the salt must be 4 bytes).
- `pgproto.sasl`: the client side of a SCRAM-SHA-256 / SCRAM-SHA-256-PLUS
  exchange (`ScramSha256`, `ChannelBinding`), plus `saslprep`, `normalize`,
  `hi`, `parse_server_first_message` and `parse_server_final_message`.
- `pgproto.password`: `scram_sha_256(password, salt=None)` and
  `md5(password, username)` produce the stored-password strings accepted by
  `ALTER USER ... PASSWORD`.
- `pgproto.escape`: `escape_literal` and `escape_identifier`.
- `pgproto.scalars`: `*_to_sql` / `*_from_sql` pairs for `bool`, `bytea`,
  `text`, `"char"`, `int2`, `int4`, `int8`, `oid`, `pg_lsn`, `float4`,
  `float8`, `timestamp`, `date`, `time`, `macaddr` and `uuid`.
- `pgproto.geometric`: points, boxes, paths and `inet` values (`Point`,
  `Box`, `Path`, `Inet` and their encoders and decoders).
- `pgproto.containers`: `hstore`, bit strings (`Varbit`), arrays (`Array`,
  `ArrayDimension`) and ranges (`Range`, `RangeBound`, `BoundKind`).
- `pgproto.core`: `ProtocolError`, `write_nullable`, `check_i16` and
  `check_i32`.

## Install

```
pip install pgproto
```

## Examples

Encoding a startup message and a simple query:

```python
from pgproto import frontend

packet = frontend.startup_message([("user", "postgres"), ("database", "postgres")])
packet += frontend.query("SELECT 1")
```

Answering an MD5 password request:

```python
from pgproto.auth import md5_hash

password = "password"
reply = md5_hash(b"postgres", password.encode(), b"\x2a\x3d\x8f\xe0")
```

A SCRAM-SHA-256 exchange, where `server_first` and `server_final` are the
payloads of the server's `AuthenticationSASLContinue` and
`AuthenticationSASLFinal` messages:

```python
from pgproto.sasl import SCRAM_SHA_256, ChannelBinding, ScramSha256
from pgproto import frontend

password = "password"
scram = ScramSha256(password.encode(), ChannelBinding.unsupported())
initial = frontend.sasl_initial_response(SCRAM_SHA_256, scram.message())

scram.update(server_first)
response = frontend.sasl_response(scram.message())

scram.finish(server_final)   # raises ScramError unless the server is verified
```

Escaping values for a hand-built statement:

```python
from pgproto.escape import escape_identifier, escape_literal

customer = "O'Brien"
sql = f"SELECT * FROM {escape_identifier('my table')} WHERE name = {escape_literal(customer)}"
```

Prefer parameterized queries; never escape values that are sent as bind
parameters.

Binary values round-trip through paired functions:

```python
from pgproto.scalars import int4_from_sql, int4_to_sql

assert int4_from_sql(int4_to_sql(42)) == 42
```

Malformed input or values too large for the wire format raise
`pgproto.core.ProtocolError`; a failed SCRAM exchange raises
`pgproto.sasl.ScramError`, a subclass of it.

## What it does not do

The package only encodes and decodes. It opens no connections, performs no
TLS negotiation, and has no decoder for messages sent by the server: reading
those messages off a socket and dispatching them is left to the caller.

## Tests

```
pip install -e ".[test]"
pytest
```