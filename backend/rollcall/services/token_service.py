"""Opaque token and session id generation."""
import secrets
import string
import time

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return '0'
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return ''.join(reversed(digits))


class TokenService:
    """Generates unguessable tokens for QR codes and session identifiers."""

    def __init__(self, segment_bytes: int = 8):
        self.segment_bytes = segment_bytes

    def _time_segment(self) -> str:
        return _to_base36(time.time_ns() // 1_000_000)

    def generate(self) -> str:
        """Two independent random segments followed by a millisecond timestamp."""
        return (
            secrets.token_urlsafe(self.segment_bytes)
            + secrets.token_urlsafe(self.segment_bytes)
            + self._time_segment()
        )

    def generate_session_id(self) -> str:
        return f"session_{self._time_segment()}{secrets.token_hex(4)}"
