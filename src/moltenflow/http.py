"""JSON-over-HTTPS helper shared by the upstream service clients.

Maps transport failures, timeouts, non-JSON bodies and non-2xx statuses
onto the orchestration error taxonomy. Never retries.
"""

import logging
from typing import Any, Optional

import httpx

from moltenflow.exceptions import BusinessRuleViolation, InfrastructureError

logger = logging.getLogger(__name__)


def _error_message(payload: Any) -> Optional[str]:
    """Extract the message from a structured {error} body."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    message = payload.get("message")
    if error is not None and isinstance(message, str):
        return message
    return None


async def request_json(
    method: str,
    url: str,
    *,
    params: Optional[dict] = None,
    json: Optional[Any] = None,
    headers: Optional[dict] = None,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """Issue one HTTP request and return the decoded JSON body.

    Args:
        method: HTTP method
        url: Absolute URL
        params: Query parameters
        json: JSON request body
        headers: Extra request headers
        timeout: Client timeout in seconds
        transport: Optional transport (tests pass httpx.MockTransport)

    Returns:
        Decoded JSON body of a 2xx response

    Raises:
        BusinessRuleViolation: Non-2xx status with an {error} body
        InfrastructureError: Network failure, timeout, non-JSON body or
            non-2xx status without a structured error
    """
    logger.debug(f"{method} {url}")

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.request(
                method, url, params=params, json=json, headers=headers
            )
    except httpx.TimeoutException as e:
        logger.warning(f"Timeout calling {url}: {e}")
        raise InfrastructureError(f"Request to {url} timed out", endpoint=url) from e
    except httpx.HTTPError as e:
        logger.warning(f"Network error calling {url}: {e}")
        raise InfrastructureError(f"Request to {url} failed: {e}", endpoint=url) from e

    try:
        payload = response.json()
    except ValueError:
        payload = None
        body_is_json = False
    else:
        body_is_json = True

    if not response.is_success:
        message = _error_message(payload)
        if message is not None:
            logger.warning(f"Upstream error from {url}: {response.status_code} - {message}")
            raise BusinessRuleViolation(
                message, status_code=response.status_code, payload=payload
            )
        logger.warning(f"HTTP {response.status_code} from {url}: {response.text[:200]}")
        raise InfrastructureError(
            f"HTTP {response.status_code} from {url}",
            endpoint=url,
            status_code=response.status_code,
        )

    if not body_is_json:
        logger.warning(f"Non-JSON response from {url}")
        raise InfrastructureError(
            f"Malformed response from {url}",
            endpoint=url,
            status_code=response.status_code,
        )

    return payload
