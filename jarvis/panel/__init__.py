"""
Client for the HTTP API of the hosting control panel.

Every call to the panel is a form encoded POST, signed with the shared panel key. The signing
itself is implemented in :mod:`jarvis.panel.signing`, the transport in :mod:`jarvis.panel.client`
and the individual endpoints in :mod:`jarvis.panel.api`.
"""

from jarvis.panel.signing import compute_token, sign_request
from jarvis.panel.client import (
    REQUEST_TIMEOUT,
    PanelClient,
    PanelError,
    PanelTransportError,
    post,
)
from jarvis.panel.models import PanelItem, ErrorEnvelope

__all__ = [
    "compute_token",
    "sign_request",
    "REQUEST_TIMEOUT",
    "PanelClient",
    "PanelError",
    "PanelTransportError",
    "post",
    "PanelItem",
    "ErrorEnvelope",
]
