"""
Room token request handling.

Adapter between an authenticated RPC entry point and the issuer. The entry
point authenticates the caller and passes the principal in; this module
enforces that callers only mint credentials for themselves, builds the room
payload, and maps credential errors to stable response codes.

Configuration errors map to ``failed-precondition`` so operators see their
problem as theirs, and callers are never told to retry.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from rtctoken.errors import ConfigurationError, CredentialError, InvalidArgument
from rtctoken.issuer import CredentialIssuer
from rtctoken.record import room_payload

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """An error the RPC layer returns to the client."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass
class TokenRequest:
    """Body of a room token request."""

    user_id: Optional[str] = None
    room_id: Optional[str] = None
    ttl_seconds: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TokenRequest":
        """Build from a request body (accepts the camelCase keys web clients send)."""
        return cls(
            user_id=data.get("user_id", data.get("userId")),
            room_id=data.get("room_id", data.get("roomID", data.get("roomId"))),
            ttl_seconds=data.get("ttl_seconds"),
        )


class RoomTokenService:
    """
    Issues room credentials on behalf of authenticated callers.

    Example:
        >>> service = RoomTokenService(issuer_from_env())
        >>> service.handle(principal=auth.uid, request={"userId": auth.uid, "roomID": "r1"})
        {'token': '...'}
    """

    def __init__(self, issuer: CredentialIssuer):
        self._issuer = issuer

    def handle(self, principal: Optional[str], request) -> Dict[str, str]:
        """
        Handle one token request.

        Args:
            principal: Authenticated caller identity, or None if unauthenticated.
            request: A TokenRequest or a request body mapping.

        Returns:
            {"token": <token>}

        Raises:
            ServiceError: With code unauthenticated, invalid-argument,
                permission-denied, failed-precondition or internal.
        """
        if not principal:
            raise ServiceError("unauthenticated", "User must be authenticated to generate tokens")

        if not isinstance(request, TokenRequest):
            request = TokenRequest.from_dict(request or {})

        if not request.user_id or not request.room_id:
            raise ServiceError("invalid-argument", "user_id and room_id are required")

        if request.user_id != principal:
            logger.warning("Rejected token request for a different user than the caller")
            raise ServiceError("permission-denied", "User can only generate tokens for themselves")

        try:
            token = self._issuer.issue(
                request.user_id,
                ttl_seconds=request.ttl_seconds,
                payload=room_payload(request.room_id),
            )
        except InvalidArgument as e:
            raise ServiceError("invalid-argument", str(e)) from e
        except ConfigurationError as e:
            raise ServiceError(
                "failed-precondition", "Token service is not configured correctly"
            ) from e
        except CredentialError as e:
            logger.error(f"Internal error issuing room token: {e}")
            raise ServiceError("internal", "Failed to generate token") from e

        logger.info(f"Issued room token for user {request.user_id} in room {request.room_id}")
        return {"token": token}
