"""Client-side list editor state for building a ranking.

Hey future me - this is pure in-memory state, no I/O. A drag-and-drop UI
(or a CLI, or a test) drives it with gesture events; only the final
to_save_request() result is sent to the ranking API. Two ordered lists:
`pool` (candidates) and `ranked` (the ranking, index 0 = position 1).
An item id lives in at most one of the two lists at any time.
"""

from dataclasses import dataclass, field

from rankify.domain.entities import (
    CatalogItem,
    FullRanking,
    RankingDraft,
    RankingType,
    SourceType,
    Visibility,
)
from rankify.domain.exceptions import ValidationException


def array_move(items: list[CatalogItem], from_index: int, to_index: int) -> list[CatalogItem]:
    """Return a copy with the element at from_index moved to to_index."""
    moved = list(items)
    moved.insert(to_index, moved.pop(from_index))
    return moved


def _index_of(items: list[CatalogItem], item_id: str) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return -1


@dataclass
class ListEditor:
    """Pool + ranked lists and the moves between them."""

    ranking_type: RankingType
    pool: list[CatalogItem] = field(default_factory=list)
    ranked: list[CatalogItem] = field(default_factory=list)
    source_type: SourceType | None = None
    source_id: str | None = None
    ranking_id: str | None = None

    @property
    def is_fixed_pool(self) -> bool:
        return self.source_type is not None and bool(self.source_id)

    @property
    def ranked_ids(self) -> list[str]:
        return [item.id for item in self.ranked]

    @property
    def pool_ids(self) -> list[str]:
        return [item.id for item in self.pool]

    def contains(self, item_id: str) -> bool:
        return _index_of(self.pool, item_id) != -1 or _index_of(self.ranked, item_id) != -1

    @classmethod
    def from_ranking(cls, full: FullRanking, items: list[CatalogItem]) -> "ListEditor":
        """Load an existing ranking for editing.

        `items` are the resolved catalog items; they are laid out in the ranking's stored
        position order, unknown ids are skipped. The pool starts empty.
        """
        by_id = {item.id: item for item in items}
        ranking = full.ranking
        return cls(
            ranking_type=ranking.ranking_type,
            ranked=[by_id[i] for i in ranking.ordered_item_ids() if i in by_id],
            source_type=ranking.source_type,
            source_id=ranking.source_id,
            ranking_id=ranking.id,
        )

    def change_type(self, ranking_type: RankingType) -> bool:
        """Switch ranking type, clearing both lists. Not allowed for fixed pools."""
        if self.is_fixed_pool or ranking_type is self.ranking_type:
            return False
        self.ranking_type = ranking_type
        self.pool = []
        self.ranked = []
        return True

    def add_to_pool(self, item: CatalogItem) -> bool:
        """Append to the pool unless already pooled or ranked. Returns True if added."""
        if item.kind is not self.ranking_type.item_kind:
            raise ValidationException(
                f"Cannot add a {item.kind.value} to a {self.ranking_type.value} ranking"
            )
        if self.contains(item.id):
            return False
        self.pool.append(item)
        return True

    def move_to_ranking(self, item_id: str) -> bool:
        """Drag-over the ranking box: pool item goes to the end of the ranking."""
        index = _index_of(self.pool, item_id)
        if index == -1:
            return False
        self.ranked.append(self.pool.pop(index))
        return True

    def move_to_pool(self, item_id: str) -> bool:
        """Drag-over the pool: ranked item goes back to the end of the pool."""
        index = _index_of(self.ranked, item_id)
        if index == -1:
            return False
        self.pool.append(self.ranked.pop(index))
        return True

    def reorder(self, active_id: str, over_id: str) -> bool:
        """Drag a ranked item over another ranked item: array-move semantics."""
        active_index = _index_of(self.ranked, active_id)
        over_index = _index_of(self.ranked, over_id)
        if active_index == -1 or over_index == -1 or active_index == over_index:
            return False
        self.ranked = array_move(self.ranked, active_index, over_index)
        return True

    def drop_outside(self, item_id: str) -> bool:
        """Dropped outside any target: a ranked item returns to the pool."""
        return self.move_to_pool(item_id)

    def to_save_request(
        self,
        title: str,
        visibility: Visibility = Visibility.PUBLIC,
        description: str | None = None,
    ) -> RankingDraft:
        """Build the save payload: ranked items in order plus the remaining pool."""
        if not title or not title.strip():
            raise ValidationException("Please enter a title for your ranking")
        if not self.ranked:
            raise ValidationException("Please add at least one item to your ranking")
        return RankingDraft(
            title=title.strip(),
            ranking_type=self.ranking_type,
            items=list(self.ranked),
            visibility=visibility,
            description=description,
            pool_items=list(self.pool),
            source_type=self.source_type if self.is_fixed_pool else None,
            source_id=self.source_id if self.is_fixed_pool else None,
        )
