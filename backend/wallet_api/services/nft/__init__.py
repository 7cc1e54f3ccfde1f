"""
NFT collection aggregation and enrichment.
"""
from wallet_api.services.nft.aggregation import aggregate_collections
from wallet_api.services.nft.enrichment import MetadataEnricher, merge_metadata
from wallet_api.services.nft.collections_service import NftCollectionsService
from wallet_api.services.nft.models import CollectionItem, CollectionSummary, MetadataResult

__all__ = [
    "aggregate_collections",
    "MetadataEnricher",
    "merge_metadata",
    "NftCollectionsService",
    "CollectionItem",
    "CollectionSummary",
    "MetadataResult",
]
