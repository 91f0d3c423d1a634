"""Flat success-or-error response envelope.

Master endpoints (and volume server uploads) answer with a single JSON object
that is either the success payload merged at the top level, or an object with
an ``error`` string. Business failures arrive this way, usually with HTTP 200,
so the presence of ``error`` is the discriminant, not the status code.
"""

from __future__ import annotations

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from weedfs.errors import ClusterReportedError, MalformedResponseError

logger = logging.getLogger(__name__)

ERROR_FIELD = "error"

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_envelope(body: bytes | str, model: type[ModelT]) -> ModelT:
    """Decode a response body into ``model`` or a cluster error.

    Args:
        body: Raw response body.
        model: Pydantic model describing the success payload.

    Returns:
        The validated success payload.

    Raises:
        ClusterReportedError: If the body carries an ``error`` field.
        MalformedResponseError: If the body is not a JSON object, or carries
            neither an error nor the required success fields.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponseError(f"Response body is not JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Response body is not a JSON object (got {type(payload).__name__})"
        )

    error = payload.get(ERROR_FIELD)
    if error is not None:
        if not isinstance(error, str):
            raise MalformedResponseError("Response error field is not a string")
        raise ClusterReportedError(error)

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.debug("Envelope did not match %s: %s", model.__name__, e)
        raise MalformedResponseError(
            f"Unexpected response: body does not match {model.__name__}"
        ) from e
