# Error types raised by the tcoder client, poller and orchestrator

from typing import Optional


class TcoderError(Exception):
    """Base class for every error raised by the tcoder client"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(TcoderError):
    """Local validation failure; raised before any network call"""


class TcoderClientError(TcoderError):
    """Transport, HTTP or payload failure talking to the tcoder server"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UploadError(TcoderClientError):
    """Upload request failed; the selected file can be retried"""


class StatusQueryError(TcoderClientError):
    """Status query failed; fatal to the job being polled"""


class PollerStateError(TcoderError):
    """Poller started while another job is still being polled"""


class InvalidTransitionError(TcoderError):
    """Orchestrator event not allowed in the current state"""

    def __init__(self, event: str, state: str):
        super().__init__(f"Cannot {event} while {state}")
        self.event = event
        self.state = state
