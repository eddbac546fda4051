"""Error kinds raised inside the TCK edge node."""


class TCKError(Exception):
    """Base class for TCK edge node errors."""


class TransportError(TCKError):
    """Control-channel connect, publish or subscribe failure."""


class CommandError(TCKError):
    """Malformed control or configuration message."""


class SessionError(TCKError):
    """Edge node session could not be created, connected or announced."""
