"""
Routing engine request client.

Shared HTTP layer for the OSRM, ORS, Valhalla and GraphHopper integrations:
one persistent httpx client per engine with uniform retry, timeout, proxy
and error handling.

Usage:
    from routing_client import RequestArgs, RequestClient

    async with RequestClient("https://router.project-osrm.org") as client:
        route = await client.request(
            RequestArgs(
                endpoint="/route/v1/driving/13.38,52.51;13.39,52.52",
                get_params={"overview": "false"},
            )
        )
"""

__version__ = "0.1.0"

from routing_client.core.exceptions import (  # noqa: E402
    APIError,
    ClientError,
    RoutingClientException,
)
from routing_client.services.request_client import (  # noqa: E402
    RequestArgs,
    RequestClient,
)

__all__ = [
    "__version__",
    "APIError",
    "ClientError",
    "RoutingClientException",
    "RequestArgs",
    "RequestClient",
]
