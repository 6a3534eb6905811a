# backend/rollcall/services/qr_service.py
"""QR code rendering and check-in payload parsing."""
import base64
import io
import json
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse

import qrcode


@dataclass(frozen=True)
class CheckinPayload:
    """A decoded check-in request."""
    session_id: str
    token: str
    student_name: Optional[str] = None


class QRService:
    """Service for QR code operations."""

    ATTEND_PATH = '/attend'

    @staticmethod
    def build_checkin_url(base_url: str, session_id: str, token: str) -> str:
        """URL encoded in the QR code shown to students."""
        query = urlencode({'session': session_id, 'token': token})
        return f"{base_url.rstrip('/')}{QRService.ATTEND_PATH}?{query}"

    @staticmethod
    def render_qr_image(data: str, box_size: int = 10, border: int = 4) -> str:
        """
        Render ``data`` as a QR code.
        Returns: PNG image as a base64 data URI
        """
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

    @staticmethod
    def parse_checkin_payload(raw, student_name: str = None) -> Optional[CheckinPayload]:
        """
        Turn a decoded QR string into a check-in payload.

        Accepts an attend URL (``...?session=<id>&token=<token>``) or a JSON
        object with ``sessionId``/``session_id``/``session``, ``token`` and
        optionally ``studentName``/``student_name``. An explicit
        ``student_name`` wins over one embedded in the data.
        Returns None when nothing usable was decoded.
        """
        if not isinstance(raw, str) or not raw.strip():
            return None

        raw = raw.strip()
        fields = QRService._fields_from_json(raw)
        if fields is None:
            fields = QRService._fields_from_url(raw)
        if fields is None:
            return None

        session_id = fields.get('sessionId') or fields.get('session_id') or fields.get('session')
        token = fields.get('token')
        if not isinstance(session_id, str) or not isinstance(token, str) or not session_id or not token:
            return None

        name = student_name
        if name is None:
            embedded = fields.get('studentName') or fields.get('student_name')
            name = embedded if isinstance(embedded, str) else None

        return CheckinPayload(session_id=session_id, token=token, student_name=name)

    @staticmethod
    def _fields_from_json(raw: str) -> Optional[dict]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _fields_from_url(raw: str) -> Optional[dict]:
        parsed = urlparse(raw)
        if not parsed.query:
            return None
        params = parse_qs(parsed.query)
        return {key: values[0] for key, values in params.items() if values}
