"""
Collection-centric response models.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CollectionItem(_CamelModel):
    """One owned token inside a collection."""
    token_id: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    amount: Optional[str] = None
    metadata: Optional[str] = None
    normalized_metadata: Optional[Dict[str, Any]] = None
    image: str = ""


class CollectionSummary(_CamelModel):
    """All tokens a wallet holds from one contract."""
    collection_address: str
    name: str
    symbol: str = ""
    count: int = 0
    items: List[CollectionItem] = []
    floor_price: Optional[float] = None
    total_value: Optional[float] = None
    token_type: Optional[str] = None
    synced_at: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        """Camel-case dict; tokenType/syncedAt only once enrichment set them."""
        data = self.model_dump(by_alias=True)
        for key in ("tokenType", "syncedAt"):
            if data[key] is None:
                del data[key]
        return data


class MetadataResult(BaseModel):
    """Outcome of one metadata lookup during enrichment."""
    address: str
    metadata: Optional[Dict[str, Any]] = None
    from_cache: Any = False  # "memory", "persistent" or False
