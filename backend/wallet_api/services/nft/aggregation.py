"""
Group wallet NFTs by collection.
"""
from typing import Dict, Iterable

from wallet_api.services.moralis.models import WalletNft
from wallet_api.services.nft.models import CollectionItem, CollectionSummary

UNKNOWN_COLLECTION = "Unknown Collection"


def aggregate_collections(nfts: Iterable[WalletNft]) -> Dict[str, CollectionSummary]:
    """Build one summary per contract address, in first-seen order.

    The first record of a collection supplies the default name and symbol.
    Every record adds to ``count`` and appends an item, so the same token
    delivered twice is counted twice.
    """
    collections: Dict[str, CollectionSummary] = {}

    for nft in nfts:
        summary = collections.get(nft.token_address)
        if summary is None:
            summary = CollectionSummary(
                collection_address=nft.token_address,
                name=nft.name or UNKNOWN_COLLECTION,
                symbol=nft.symbol or "",
            )
            collections[nft.token_address] = summary

        summary.count += 1
        summary.items.append(CollectionItem(
            token_id=nft.token_id,
            name=nft.name,
            symbol=nft.symbol,
            amount=nft.amount,
            metadata=nft.metadata,
            normalized_metadata=nft.normalized_metadata,
            image=nft.image,
        ))

    return collections
