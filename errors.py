from typing import Optional


class RelayError(Exception):
    """Client-caused failure, reported only to the originating connection."""

    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidJoinRequest(RelayError):
    default_message = "Invalid invitation data"


class InvalidMessage(RelayError):
    default_message = "Invalid message"
