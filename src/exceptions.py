"""
Error taxonomy shared by the inventory, fare and booking services.

Services raise these instead of collapsing every failure into ``False`` or
``None``, so callers can tell a bad request from a missing record and from an
infrastructure outage.
"""


class RailwayError(Exception):
    """Base class for all domain errors"""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidRequestError(RailwayError):
    """Missing or malformed input"""


class NotFoundError(RailwayError):
    """Referenced train, journey, station or booking does not exist"""


class SeatsUnavailableError(RailwayError):
    """Not enough seats left in the requested class"""


class InvalidStateError(RailwayError):
    """Booking is not in a state that allows the requested transition"""


class PaymentGatewayError(RailwayError):
    """Payment provider rejected the call or could not be reached"""


class InfrastructureError(RailwayError):
    """Database or other backing service failure"""
