"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .identity_client import IdentityClient, get_identity_client
from .payment_gateway import PaymentSessionGateway, get_payment_gateway
from .places_client import PlacesClient, get_places_client

__all__ = [
    'IdentityClient', 'get_identity_client',
    'PaymentSessionGateway', 'get_payment_gateway',
    'PlacesClient', 'get_places_client',
]
