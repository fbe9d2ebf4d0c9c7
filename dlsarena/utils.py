"""Utility functions for the application."""

from flask import request

from .errors import ValidationError


def json_body():
    """Return the request's JSON object, or {} when there is no body.

    Raises:
        ValidationError: If the body is JSON but not an object.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload
