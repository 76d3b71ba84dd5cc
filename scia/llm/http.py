"""
Shared requests plumbing for REST-based providers.
"""

from typing import Any, Dict, Optional

import requests

from .context import RequestContext
from .errors import GenerationTimeout, InvalidModel, ProviderError


def request_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    provider: str,
    ctx: RequestContext,
    timeout_s: float,
    headers: Optional[Dict[str, str]] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Perform an HTTP call and decode its JSON body.

    Args:
        session: requests session to use
        method: HTTP method
        url: Target URL
        provider: Provider name for error messages
        ctx: Request context; checked before the call and caps the timeout
        timeout_s: Default timeout for this call
        headers: Extra headers
        payload: JSON body

    Returns:
        Decoded JSON body

    Raises:
        GenerationCancelled: If ctx was cancelled
        GenerationTimeout: If the deadline passed or the transport timed out
        ProviderError: For connection failures, non-200 answers or bad JSON
    """
    ctx.check(provider)

    try:
        response = session.request(
            method,
            url,
            headers=headers,
            json=payload,
            timeout=ctx.timeout(timeout_s),
        )
    except requests.Timeout as e:
        raise GenerationTimeout(provider, f"request to {url} timed out", e) from e
    except requests.RequestException as e:
        raise ProviderError(provider, f"request to {url} failed: {e}", e) from e

    if response.status_code == 404:
        raise InvalidModel(provider, f"model or endpoint not found (status 404): {url}")
    if response.status_code != 200:
        raise ProviderError(provider, f"API error (status {response.status_code}): {response.text[:500]}")

    try:
        return response.json()
    except ValueError as e:
        raise ProviderError(provider, f"failed to decode response: {e}", e) from e


def probe(session: requests.Session, url: str, ctx: RequestContext, timeout_s: float,
          headers: Optional[Dict[str, str]] = None) -> bool:
    """GET ``url`` and report whether it answered 200; never raises."""
    if ctx.done():
        return False
    try:
        response = session.get(url, headers=headers, timeout=ctx.timeout(timeout_s))
    except requests.RequestException:
        return False
    return response.status_code == 200
