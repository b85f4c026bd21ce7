"""
JWT helpers used to identify the caller of an authorization check
"""

import time
from datetime import timedelta
from typing import Optional, Union, Any

from fastapi import HTTPException, status
from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from joserfc.errors import BadSignatureError, DecodeError, ExpiredTokenError, InvalidTokenError, JoseError
import structlog

from campaign_rbac.core.config import JWT_CONFIG

logger = structlog.get_logger()

ALGORITHM = JWT_CONFIG["algorithm"]
ACCESS_TOKEN_EXPIRE_MINUTES = JWT_CONFIG["access_token_expire_minutes"]
ISSUER = JWT_CONFIG["issuer"]
TRUSTED_ISSUERS = frozenset(JWT_CONFIG["trusted_issuers"])

# joserfc key object (reusable)
_jwt_key = OctKey.import_key(JWT_CONFIG["secret_key"])


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict] = None
) -> str:
    """
    Create JWT access token

    Args:
        subject: Token subject (the user ID)
        expires_delta: Custom expiration time
        additional_claims: Additional claims to include in token

    Returns:
        Encoded JWT token
    """
    now = int(time.time())
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "exp": now + int(expires_delta.total_seconds()),
        "sub": str(subject),
        "type": "access",
        "iss": ISSUER,
        "iat": now,
    }

    if additional_claims:
        to_encode.update(additional_claims)

    encoded_jwt = jose_jwt.encode({"alg": ALGORITHM}, to_encode, _jwt_key)

    logger.debug("Access token created", subject=subject, expires=to_encode["exp"])
    return encoded_jwt


def verify_token(token: str, token_type: str = "access") -> str:
    """
    Verify JWT token and return its subject

    Args:
        token: JWT token to verify
        token_type: Expected token type

    Returns:
        Token subject

    Raises:
        HTTPException: 401 if the token is invalid, expired or from an untrusted issuer
    """
    try:
        payload = jose_jwt.decode(token, _jwt_key, algorithms=[ALGORITHM]).claims
    except (BadSignatureError, DecodeError, ExpiredTokenError, InvalidTokenError, JoseError, ValueError) as exc:
        logger.warning("JWT verification failed", error=str(exc))
        raise _unauthorized("Could not validate credentials")

    if payload.get("type") != token_type:
        logger.warning("Invalid token type", expected=token_type, actual=payload.get("type"))
        raise _unauthorized("Invalid token type")

    subject = payload.get("sub")
    if subject is None:
        logger.warning("Token missing subject")
        raise _unauthorized("Invalid token: missing subject")

    exp = payload.get("exp")
    if exp is None or time.time() > exp:
        logger.warning("Token expired", subject=subject)
        raise _unauthorized("Token expired")

    issuer = payload.get("iss")
    if TRUSTED_ISSUERS and issuer not in TRUSTED_ISSUERS:
        logger.warning("Token issuer is not trusted", issuer=issuer, trusted=sorted(TRUSTED_ISSUERS))
        raise _unauthorized("Untrusted token issuer")

    logger.debug("Token verified successfully", subject=subject, issuer=issuer)
    return str(subject)
