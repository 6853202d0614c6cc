import json

from core.error_handler import _build_error_response


def test_build_error_response_production_hides_optional_fields():
    resp = _build_error_response(
        correlation_id="cid",
        error_type="internal_server_error",
        message="An internal error occurred",
        environment="production",
        details={"debug": True},
        traceback_str="trace",
        exception_type="ValueError",
        validation_errors={"x": 1},
        status_code=500,
    )
    body = json.loads(resp.body)

    assert resp.status_code == 500
    assert body["success"] is False
    assert body["error"] == {"correlation_id": "cid", "type": "internal_server_error"}


def test_build_error_response_development_includes_optional_fields():
    resp = _build_error_response(
        correlation_id="cid",
        error_type="internal_server_error",
        message="An internal error occurred",
        environment="development",
        details={"debug": True},
        traceback_str="trace",
        exception_type="ValueError",
        validation_errors={"x": 1},
        status_code=500,
    )
    body = json.loads(resp.body)

    assert body["error"]["details"] == {"debug": True}
    assert body["error"]["traceback"] == "trace"
    assert body["error"]["exception_type"] == "ValueError"
    assert body["error"]["validation_errors"] == {"x": 1}


def test_build_error_response_omits_none_values():
    resp = _build_error_response(
        correlation_id="cid",
        error_type="http_error",
        message="An HTTP error occurred",
        environment="development",
        status_code=404,
    )
    body = json.loads(resp.body)

    assert resp.status_code == 404
    assert set(body["error"]) == {"correlation_id", "type"}
