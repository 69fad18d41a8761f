"""Utility modules."""

from casa_client.utils.normalization import (
    build_query,
    coerce_id,
    unwrap_collection,
    unwrap_envelope,
)

__all__ = [
    "build_query",
    "coerce_id",
    "unwrap_collection",
    "unwrap_envelope",
]
