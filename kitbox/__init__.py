"""Everyday building blocks: snowflake IDs, a TTL cache, Bloom filters, MurmurHash3 and nonces."""

__version__ = "0.1.0"