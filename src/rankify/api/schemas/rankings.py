"""API schemas for rankings."""

from datetime import datetime

from pydantic import BaseModel, Field

from rankify.api.schemas.catalog import CatalogItemSchema, to_domain_item
from rankify.api.schemas.friends import ProfileResponse
from rankify.domain.entities import (
    FullRanking,
    ItemMeta,
    Ranking,
    RankingDraft,
    RankingSummary,
    RankingType,
    SourceType,
    Visibility,
)


class RankingSaveRequest(BaseModel):
    """Body of POST /rankings and PUT /rankings/{id}.

    Title/item emptiness is checked by the service so the messages stay the same
    for every caller.
    """

    title: str = Field(default="", max_length=255)
    description: str | None = None
    ranking_type: RankingType
    visibility: Visibility = Visibility.PUBLIC
    items: list[CatalogItemSchema] = Field(default_factory=list)
    pool_items: list[CatalogItemSchema] = Field(default_factory=list)
    source_type: SourceType | None = None
    source_id: str | None = None

    def to_draft(self) -> RankingDraft:
        return RankingDraft(
            title=self.title,
            description=self.description,
            ranking_type=self.ranking_type,
            visibility=self.visibility,
            items=[to_domain_item(item) for item in self.items],
            pool_items=[to_domain_item(item) for item in self.pool_items],
            source_type=self.source_type,
            source_id=self.source_id,
        )


class VisibilityUpdateRequest(BaseModel):
    visibility: Visibility


class RankingItemResponse(BaseModel):
    item_id: str
    position: int
    notes: str | None = None


class RankingResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None = None
    ranking_type: RankingType
    visibility: Visibility
    source_type: SourceType | None = None
    source_id: str | None = None
    source_variant: int | None = None
    pool_item_ids: list[str] = Field(default_factory=list)
    items: list[RankingItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, ranking: Ranking) -> "RankingResponse":
        return cls(
            id=ranking.id,
            user_id=ranking.owner_id,
            title=ranking.title,
            description=ranking.description,
            ranking_type=ranking.ranking_type,
            visibility=ranking.visibility,
            source_type=ranking.source_type,
            source_id=ranking.source_id,
            source_variant=ranking.source_variant,
            pool_item_ids=list(ranking.pool_item_ids),
            items=[
                RankingItemResponse(item_id=i.item_id, position=i.position, notes=i.notes)
                for i in sorted(ranking.items, key=lambda i: i.position)
            ],
            created_at=ranking.created_at,
            updated_at=ranking.updated_at,
        )


class RankingSummaryResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None = None
    ranking_type: RankingType
    visibility: Visibility
    source_type: SourceType | None = None
    source_id: str | None = None
    source_variant: int | None = None
    item_count: int
    like_count: int
    owner_username: str | None = None
    owner_display_name: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, summary: RankingSummary) -> "RankingSummaryResponse":
        r = summary.ranking
        return cls(
            id=r.id,
            user_id=r.owner_id,
            title=r.title,
            description=r.description,
            ranking_type=r.ranking_type,
            visibility=r.visibility,
            source_type=r.source_type,
            source_id=r.source_id,
            source_variant=r.source_variant,
            item_count=summary.item_count,
            like_count=summary.like_count,
            owner_username=summary.owner_username,
            owner_display_name=summary.owner_display_name,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


class RankingListResponse(BaseModel):
    rankings: list[RankingSummaryResponse]
    total: int

    @classmethod
    def from_domain(cls, summaries: list[RankingSummary]) -> "RankingListResponse":
        return cls(
            rankings=[RankingSummaryResponse.from_domain(s) for s in summaries],
            total=len(summaries),
        )


class ItemMetaResponse(BaseModel):
    id: str
    name: str
    image_url: str | None = None
    duration_ms: int | None = None
    artist_name: str | None = None

    @classmethod
    def from_domain(cls, meta: ItemMeta) -> "ItemMetaResponse":
        return cls(
            id=meta.id,
            name=meta.name,
            image_url=meta.image_url,
            duration_ms=meta.duration_ms,
            artist_name=meta.artist_name,
        )


class FullRankingResponse(BaseModel):
    """Ranking detail: positional items plus metadata keyed by item id."""

    ranking: RankingResponse
    owner: ProfileResponse | None = None
    item_metadata: dict[str, ItemMetaResponse] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, full: FullRanking) -> "FullRankingResponse":
        return cls(
            ranking=RankingResponse.from_domain(full.ranking),
            owner=ProfileResponse.from_domain(full.owner) if full.owner else None,
            item_metadata={m.id: ItemMetaResponse.from_domain(m) for m in full.items},
        )


class LikeResponse(BaseModel):
    liked: bool
    message: str
