import time
from typing import Optional

import bcrypt
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from config import get_settings
from errors import InvalidToken

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.secret_key, salt="auth-token")


def hash_password(password: str) -> str:
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode(
        "utf-8"
    )


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def issue_token(user_id: int) -> str:
    return _serializer().dumps({"uid": user_id, "iat": int(time.time())})


def verify_token(token: str, max_age_secs: Optional[int] = None) -> int:
    if max_age_secs is None:
        max_age_secs = get_settings().token_max_age_secs
    try:
        data = _serializer().loads(token, max_age=max_age_secs)
    except SignatureExpired as exc:
        raise InvalidToken("Token has expired") from exc
    except BadData as exc:
        raise InvalidToken() from exc

    user_id = data.get("uid") if isinstance(data, dict) else None
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise InvalidToken()
    return user_id
