"""Client singletons for external API interactions."""
from placematch.clients.michelin_client import MichelinClient, MichelinAPIError

__all__ = ["MichelinClient", "MichelinAPIError"]
