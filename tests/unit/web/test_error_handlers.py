"""Tests for mapping user errors to HTTP responses."""

import json

import pytest

from ledgerdesk.errors import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    TransientError,
    UserError,
    ValidationError,
)
from ledgerdesk.web.error_handlers import classify_user_error, create_json_error_response


class OtherUserError(UserError):
    pass


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (AuthenticationError(), (401, "authentication_error")),
        (AccessDeniedError("Permission denied"), (403, "access_denied")),
        (NotFoundError(), (404, "not_found")),
        (ValidationError("bad"), (400, "validation_error")),
        (TransientError(), (503, "transient_error")),
        (OtherUserError("other"), (400, "bad_request")),
    ],
)
def test_classify_user_error(error, expected):
    assert classify_user_error(error) == expected


def test_json_error_response_body():
    response = create_json_error_response(403, "Permission denied", "access_denied")
    assert response.status_code == 403
    assert json.loads(response.body) == {"message": "Permission denied", "type": "access_denied"}
