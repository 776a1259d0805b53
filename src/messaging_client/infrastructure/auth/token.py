"""Read the local user's identity out of the access token.

The backend verifies the signature; the client only needs the subject to tag
its own optimistic messages and ignore its own receipts.
"""
from __future__ import annotations

import logging

import jwt

logger = logging.getLogger(__name__)

_SUBJECT_CLAIMS = ("sub", "userId", "id")


def subject_from_token(token: str | None) -> str | None:
    if not token:
        return None
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        logger.debug("Access token is not a readable JWT", exc_info=True)
        return None
    for claim in _SUBJECT_CLAIMS:
        value = payload.get(claim)
        if value is not None and value != "":
            return str(value)
    return None
