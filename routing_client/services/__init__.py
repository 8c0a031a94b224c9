"""
Services module.

Provides the HTTP layer for the routing engine integrations:
- RequestClient with retry, timeout and proxy handling
- Retry predicates shared with engine specific code
"""
from routing_client.services.request_client import (
    IDEMPOTENT_METHODS,
    RequestArgs,
    RequestClient,
    is_idempotent_request_error,
    is_network_error,
    is_network_or_idempotent_request_error,
    is_over_query_limit_error,
    retry_over_query_limit_condition,
)

__all__ = [
    "IDEMPOTENT_METHODS",
    "RequestArgs",
    "RequestClient",
    "is_idempotent_request_error",
    "is_network_error",
    "is_network_or_idempotent_request_error",
    "is_over_query_limit_error",
    "retry_over_query_limit_condition",
]
