"""Exceptions raised by the rendezvous engine."""


class RendezvousError(Exception):
    """Base class for rendezvous failures."""


class BrokerClosedError(RendezvousError):
    """Raised to callers suspended in, or entering, a closed broker."""

    def __init__(self, message: str = "Broker is shutting down"):
        super().__init__(message)
