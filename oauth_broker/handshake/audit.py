"""
Handshake Audit Logging
Logs handshake lifecycle events for security monitoring and incident recovery.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger("handshake.audit")


def token_hint(token: Optional[str]) -> str:
    """Short, non-reusable prefix of a state token for log correlation."""
    if not token:
        return "<empty>"
    return f"{token[:6]}..."


def fingerprint(secret: Optional[str]) -> Optional[str]:
    """SHA-256 fingerprint of a credential; never log the credential itself."""
    if not secret:
        return None
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:12]


def log_handshake_event(
    event_type: str,
    identity: Optional[str] = None,
    token: Optional[str] = None,
    success: bool = True,
    details: Optional[str] = None,
) -> None:
    """
    Log a handshake lifecycle event.
    
    Args:
        event_type: Type of event (e.g., "issued", "consumed", "expired", "persisted")
        identity: Identity bound to the handshake, if known
        token: State token (only a prefix is logged)
        success: Whether the event was successful
        details: Additional details about the event
    """
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "identity": identity,
        "state_hint": token_hint(token) if token is not None else None,
        "success": success,
        "details": details,
    }
    
    if success:
        logger.info(f"Handshake event: {event_type}", extra=log_data)
    else:
        logger.warning(f"Handshake event failed: {event_type}", extra=log_data)
