import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from database import get_db, storage_errors
from errors import InvalidCredential, InvalidToken, MissingCredential, UnknownUser
from models import User
from security import verify_token

logger = logging.getLogger(__name__)


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise MissingCredential()
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise MissingCredential()
    return token


def resolve_user(session: Session, authorization: Optional[str]) -> User:
    """Return the user a bearer ``Authorization`` header belongs to.

    Raises ``MissingCredential`` when there is no usable header,
    ``InvalidCredential`` when the token does not verify, and ``UnknownUser``
    when the token names a user that no longer exists.
    """
    token = bearer_token(authorization)
    try:
        user_id = verify_token(token)
    except InvalidToken as exc:
        logger.info(f"auth_rejected: reason=invalid_token detail={exc.message}")
        raise InvalidCredential(exc.message) from exc

    with storage_errors("authenticating request"):
        user = session.get(User, user_id)
    if user is None:
        logger.info(f"auth_rejected: reason=unknown_user user_id={user_id}")
        raise UnknownUser()
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    return resolve_user(db, request.headers.get("Authorization"))
