"""Low-level PostgreSQL wire protocol: frontend messages, authentication, escaping and binary value formats."""

__version__ = "0.6.0"

__all__ = [
    "auth",
    "containers",
    "core",
    "escape",
    "frontend",
    "geometric",
    "password",
    "sasl",
    "scalars",
]