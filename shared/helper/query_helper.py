"""Helpers to turn user input into request payloads."""

import json
from typing import Iterable, Iterator, TypeVar

from shared.models.config import DefaultOperator

T = TypeVar("T")

MATCH_ALL = '{"query": {"match_all": {}}}'


def normalize_query(query: str, default_operator: DefaultOperator = DefaultOperator.OR) -> str:
    """Turn a free-form query into a JSON search body.

    A query that already is a JSON object is sent as given. Anything else is
    wrapped into a query_string query. An empty query matches all documents.

    Args:
        query (str): JSON body or Lucene query string, e.g. 'affiliation:"alberta"'.
        default_operator (DefaultOperator): Operator between terms of a wrapped query string.

    Returns:
        str: The request body.
    """
    query = query.strip()
    if not query:
        return MATCH_ALL
    if query.startswith("{"):
        try:
            if isinstance(json.loads(query), dict):
                return query
        except json.JSONDecodeError:
            pass
    return json.dumps({
        "query": {
            "query_string": {
                "query": query,
                "default_operator": DefaultOperator(default_operator).value,
            }
        }
    })


def read_lines(lines: Iterable[str]) -> list[str]:
    """Strip lines and drop the empty ones, e.g. from an identifier or query file."""
    return [line.strip() for line in lines if line.strip()]


def batched(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Group items into lists of at most size elements, keeping their order."""
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}.")
    batch: list[T] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


def shorten(value: str, length: int) -> str:
    """Shorten a long token for logging, keeping its head and tail."""
    if len(value) < length:
        return value
    half = length // 2
    return f"{value[:half]} [...] {value[-half:]} [{len(value)}]"
