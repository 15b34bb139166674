"""
Tests for shared constants.
"""

from battleship_sync.shared import constants


def test_constants_import():
    """Test that constants can be imported."""
    assert isinstance(constants.DEFAULT_PORT, int)
    assert constants.DEFAULT_PORT == 12345
    assert constants.DEFAULT_HOST == "127.0.0.1"


def test_protocol_codes_are_distinct():
    codes = {
        constants.PROTOCOL_END,
        constants.PROTOCOL_SENDGAME,
        constants.PROTOCOL_RECVGAME,
        constants.PROTOCOL_DATA,
    }
    assert codes == {"P0", "P1", "P2", "P3"}


def test_separators():
    assert constants.PROTOCOL_SEPARATOR == "#"
    assert constants.FIELD_SEPARATOR == ","


def test_default_scope_is_known():
    assert constants.DEFAULT_EXCHANGE_SCOPE in constants.EXCHANGE_SCOPES
