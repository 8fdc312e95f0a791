import pytest

from ovndbrestore.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("hostname_not_found", path="/tmp/nbdb")

    assert "Could not read the host name from /tmp/nbdb." in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("does_not_exist")
