"""Minimal client for the roomrec HTTP API."""
from typing import Any, Optional, Type, TypeVar

import requests
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class APIError(Exception):
    """Error response (or transport failure, status 0) from the server."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error {status_code}: {detail}")


def _error_detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message") or body.get("error")
        if detail:
            return detail if isinstance(detail, str) else str(detail)
    return response.text or f"HTTP {response.status_code}"


def api_call(base_url: str, method: str, path: str,
             data: Optional[BaseModel] = None,
             response_model: Optional[Type[T]] = None) -> Any:
    """Call an endpoint and unwrap the ``{"success", "data"}`` envelope.

    Args:
        base_url: Server root, e.g. ``http://127.0.0.1:3001``
        method: HTTP method
        path: Endpoint path, with or without a leading slash
        data: Request body model, sent as JSON by alias
        response_model: Model to validate the unwrapped payload with

    Returns:
        The validated model, the decoded JSON, or ``{}`` for empty bodies.

    Raises:
        APIError: on non-2xx responses and network errors.
    """
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"

    kwargs = {}
    if data is not None:
        kwargs["json"] = data.model_dump(mode="json", by_alias=True, exclude_none=True)

    with requests.Session() as session:
        session.max_redirects = 10
        try:
            response = session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise APIError(0, str(e))

    if response.status_code >= 400:
        raise APIError(response.status_code, _error_detail(response))

    if not response.content:
        return {}

    payload = response.json()
    if isinstance(payload, dict) and "data" in payload and payload.get("success") is True:
        payload = payload["data"]

    if response_model is not None:
        return response_model.model_validate(payload)
    return payload
