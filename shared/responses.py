"""
Response construction for the Image Cache Gateway.

All request paths end in exactly one call to :func:`send_response`.
"""

from typing import Mapping, Optional, Union

from fastapi import Response


PLAIN_TEXT = "text/plain; charset=utf-8"
IMAGE_JPEG = "image/jpeg"


def send_response(
    status_code: int,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[Union[bytes, str]] = None,
) -> Response:
    """Build the terminal response for a request.

    String bodies are sent as UTF-8 plain text unless ``headers`` names a
    content type. ``None`` produces an empty body.
    """
    response_headers = dict(headers or {})
    has_content_type = any(name.lower() == "content-type" for name in response_headers)

    if body is None:
        content = b""
    elif isinstance(body, str):
        content = body.encode("utf-8")
        if not has_content_type:
            response_headers["Content-Type"] = PLAIN_TEXT
    else:
        content = body

    return Response(content=content, status_code=status_code, headers=response_headers)


def image_response(data: bytes) -> Response:
    """200 response carrying cached image bytes."""
    return send_response(200, {"Content-Type": IMAGE_JPEG}, data)
