"""Response validator - turns a completed response into a payload or a classification"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from feedclient.domain.models.classification import ErrorClassification
from feedclient.domain.models.fetch_request import DEFAULT_CONTENT_TYPE
from feedclient.infrastructure.http.classifier import ResponseValidationError, classify
from feedclient.infrastructure.http.transport import TransportResponse, parse_content_type

logger = logging.getLogger(__name__)


def validate_response(
    response: TransportResponse,
    expected_content_type: str = DEFAULT_CONTENT_TYPE,
) -> Union[Any, ErrorClassification]:
    """Validate a completed response and parse its body.

    A 2xx response must declare ``expected_content_type`` (parameters such
    as charset are ignored); anything else, e.g. an HTML error page served
    with 200, is a malformed response.

    Args:
        response: Completed HTTP response
        expected_content_type: Media type the body must declare

    Returns:
        Parsed payload, or the ErrorClassification of the failure
    """
    if not response.ok:
        return classify(response)

    expected = parse_content_type(expected_content_type)[0]
    if response.media_type != expected:
        logger.debug(f"Unexpected content type {response.content_type!r} from {response.url}")
        return classify(
            ResponseValidationError(
                f"Expected {expected} but server returned {response.content_type or 'no content type'}",
                http_status=response.status_code,
            )
        )

    try:
        text = response.content.decode(response.encoding)
        return json.loads(text)
    except (UnicodeDecodeError, LookupError, ValueError, RecursionError) as e:
        return classify(
            ResponseValidationError(f"Invalid JSON body: {e}", http_status=response.status_code, cause=e)
        )
