import secrets
import time

from itsdangerous import BadSignature, URLSafeTimedSerializer

from config import get_settings


FORM_SALT = "record-form"


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.csrf_secret, salt=FORM_SALT)


def generate_csrf_token() -> str:
    return _serializer().dumps({"n": secrets.token_hex(8), "ts": int(time.time())})


def validate_csrf_token(token: str, max_age_hours: int = 2) -> bool:
    if not token:
        return False
    try:
        data = _serializer().loads(token, max_age=max_age_hours * 3600)
    except BadSignature:
        return False
    return isinstance(data, dict) and "n" in data
