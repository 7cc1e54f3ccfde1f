"""
Database models.
"""
from wallet_api.models.data_cache import DataCache
from wallet_api.models.nft_webhook import NftWebhook

__all__ = [
    "DataCache",
    "NftWebhook",
]
