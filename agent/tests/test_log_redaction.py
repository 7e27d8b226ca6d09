from jules_mcp.log_redaction import REDACTED, make_log_redactor


def test_redacts_api_key_header() -> None:
    redactor = make_log_redactor()
    event_dict = {
        "headers": {"X-Goog-Api-Key": "supersecret", "Content-Type": "application/json"},
        "event": "Jules API request",
    }
    out = redactor(None, "debug", event_dict)
    assert "supersecret" not in str(out)
    assert out["headers"]["Content-Type"] == "application/json"


def test_redacts_api_key_field() -> None:
    redactor = make_log_redactor()
    out = redactor(None, "info", {"event": "settings", "jules_api_key": "k-123"})
    assert out["jules_api_key"] == REDACTED


def test_redacts_inline_key_in_message() -> None:
    redactor = make_log_redactor()
    event_dict = {"event": "error", "body": "rejected x-goog-api-key: abc123 for project"}
    out = redactor(None, "warning", event_dict)
    assert "abc123" not in str(out)
    assert out["body"].endswith("for project")


def test_redacts_bearer_string_anywhere() -> None:
    redactor = make_log_redactor()
    event_dict = {"event": "error", "body": "oops Authorization: Bearer abc.def.ghi"}
    out = redactor(None, "test", event_dict)
    assert "abc.def.ghi" not in str(out)


def test_leaves_plain_events_alone() -> None:
    redactor = make_log_redactor()
    event_dict = {"event": "Tool call failed", "tool": "jules_get_status", "attempts": [1, 2]}
    assert redactor(None, "info", event_dict) == event_dict
