"""Statement builders and the multi-record find query."""

from recordkit.queries.builders import (
    CompiledQuery,
    build_delete_query,
    build_describe_query,
    build_insert_query,
    build_select_query,
    build_update_query,
)
from recordkit.queries.find import FindQuery

__all__ = [
    "CompiledQuery",
    "FindQuery",
    "build_select_query",
    "build_insert_query",
    "build_update_query",
    "build_delete_query",
    "build_describe_query",
]
