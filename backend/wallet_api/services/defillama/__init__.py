"""
DefiLlama API access.
"""
from wallet_api.services.defillama.client import DefiLlamaClient

__all__ = ["DefiLlamaClient"]
