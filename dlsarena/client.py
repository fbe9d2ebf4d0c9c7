"""HTTP client for the dlsarena API.

Responses are classified into the same error classes the server raises, so
callers can catch ``AlreadyResolvedError`` and friends without looking at
status codes.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import time
from collections.abc import Callable, Mapping
from typing import Any

import requests

from dlsarena.dispute.models import Decision, parse_dispute_input
from dlsarena.errors import (
    AlreadyCollectedError,
    AlreadyResolvedError,
    AppError,
    ForbiddenError,
    InvalidAttachmentError,
    NetworkError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from dlsarena.upload.services import check_attachment

DEFAULT_TIMEOUT = 10
GENERIC_SERVER_MESSAGE = "An unexpected server error occurred."
RETRY_STATUSES = frozenset({502, 503, 504})
RETRY_DELAY = 0.5

_CONFLICT_ERRORS = {
    AlreadyResolvedError.code: AlreadyResolvedError,
    AlreadyCollectedError.code: AlreadyCollectedError,
}


class ArenaClient:
    """Talks to the dispute, reward and tournament endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        on_unauthorized: Callable[[], None] | None = None,
        session: requests.Session | None = None,
        retries: int = 2,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.on_unauthorized = on_unauthorized
        self.session = session or requests.Session()
        self.retries = retries

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        url = f"{self.base_url}{path}"
        # Only reads are replayed; a repeated POST could file twice.
        max_retries = self.retries if method == "GET" else 0
        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(
                    method, url, headers=headers, timeout=self.timeout, **kwargs
                )
            except requests.exceptions.RequestException as e:
                logging.warning(
                    f"{method} {url} failed (attempt {attempt + 1}/{max_retries + 1}): {e}"
                )
                if attempt < max_retries:
                    time.sleep(RETRY_DELAY)
                    continue
                raise NetworkError() from e
            if response.status_code in RETRY_STATUSES and attempt < max_retries:
                logging.warning(
                    f"{method} {url} returned {response.status_code}, retrying"
                )
                time.sleep(RETRY_DELAY)
                continue
            return self._handle_response(response)

    def _handle_response(self, response: requests.Response) -> Any:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.ok:
            return payload

        body = payload if isinstance(payload, dict) else {}
        message = body.get("message")
        code = body.get("code")
        status = response.status_code

        if status == 401:
            self.token = None
            if self.on_unauthorized:
                self.on_unauthorized()
            raise UnauthorizedError(message or "Your session has expired.")
        if status < 500 and code in _CONFLICT_ERRORS:
            raise _CONFLICT_ERRORS[code](message or _CONFLICT_ERRORS[code]().message)
        if status < 500 and code == InvalidAttachmentError.code:
            raise InvalidAttachmentError(
                message or "Invalid attachment.", field=body.get("field") or "proof"
            )
        if status < 500 and code == ValidationError.code:
            raise ValidationError(message or "Validation failed.", field=body.get("field"))
        if status == 403:
            raise ForbiddenError(message or ForbiddenError().message)
        if status == 404:
            raise NotFoundError(message or NotFoundError().message)
        if status >= 500:
            logging.error(f"Server error {status} from {response.url}: {message}")
            raise ServerError(message or GENERIC_SERVER_MESSAGE, status)
        raise AppError(message or f"Request failed with status {status}.", status)

    def get_recent_matches_for_dispute(self) -> list[dict[str, Any]]:
        """List the caller's matches still inside the dispute window."""
        return self._request("GET", "/matches/recent-for-dispute")

    def create_dispute(
        self, data: Mapping[str, Any], proof_path: str | None = None
    ) -> dict[str, Any]:
        """File a dispute, uploading ``proof_path`` as the screenshot if given.

        The input and the attachment are checked before anything is sent.
        """
        parse_dispute_input(data, has_proof_file=proof_path is not None)
        if proof_path is None:
            return self._request("POST", "/disputes", json=dict(data))

        mimetype = mimetypes.guess_type(proof_path)[0]
        try:
            size = os.path.getsize(proof_path)
        except OSError as e:
            raise InvalidAttachmentError(f"Cannot read {proof_path}.") from e
        check_attachment(size, mimetype)

        form = {k: str(v) for k, v in data.items() if v is not None}
        with open(proof_path, "rb") as fh:
            files = {"proof": (os.path.basename(proof_path), fh, mimetype)}
            return self._request("POST", "/disputes", data=form, files=files)

    def list_user_disputes(self) -> list[dict[str, Any]]:
        """List the disputes the caller has filed."""
        return self._request("GET", "/disputes/user")

    def list_validator_disputes(self) -> list[dict[str, Any]]:
        """List the pending disputes the caller may resolve."""
        return self._request("GET", "/disputes/validator")

    def resolve_dispute(
        self, dispute_id: str, decision: Decision | str, comment: str
    ) -> dict[str, Any]:
        """Approve or reject a dispute as a validator."""
        parsed = Decision.parse(decision)
        if not (comment or "").strip():
            raise ValidationError(
                "A comment is required to resolve a dispute.", field="comment"
            )
        return self._request(
            "PUT",
            f"/disputes/validator/{dispute_id}",
            json={"status": parsed.value, "comment": comment.strip()},
        )

    def get_validator_stats(self) -> dict[str, Any]:
        """Return the caller's validator statistics."""
        return self._request("GET", "/validator/stats")

    def list_rewards(self, reward_type: str | None = "validation") -> list[dict[str, Any]]:
        """List the caller's rewards."""
        params = {"type": reward_type} if reward_type else None
        return self._request("GET", "/rewards/user", params=params)

    def claim_reward(self, reward_id: str) -> dict[str, Any]:
        """Collect a reward; the response carries ``newBalance``."""
        return self._request("POST", f"/rewards/{reward_id}/collect")

    def get_tournament(self, tournament_id: str) -> dict[str, Any]:
        return self._request("GET", f"/tournaments/{tournament_id}")

    def get_bracket(self, tournament_id: str) -> dict[str, Any]:
        return self._request("GET", f"/tournaments/{tournament_id}/bracket")

    def update_preferred_currency(self, currency: str) -> dict[str, Any]:
        return self._request(
            "PUT", "/users/currency", json={"preferredCurrency": currency}
        )
