"""Category line-item store - one ordered list of line items per CategoryId."""
import dataclasses
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from app.services.cost_profile import (
    CATEGORY_SHAPE,
    LINE_ITEM_TYPES,
    CategoryId,
    LineItem,
    coerce_category,
    coerce_item_fields,
    new_line_item,
)

logger = logging.getLogger("hajj-costing.store")


class UnknownCategoryError(ValueError):
    """Raised when a category key is not part of the closed CategoryId set."""


class LineItemStore:
    """
    Keyed collection of line items.

    Every CategoryId always has a (possibly empty) list. Numeric fields are
    normalized on the way in, so the store never holds a negative or
    non-finite number. ``update`` and ``remove`` on an id that is not present
    are no-ops: the UI may race a removal against a pending edit.
    """

    def __init__(self, initial: Optional[Mapping[Any, Any]] = None) -> None:
        self._items: Dict[CategoryId, List[LineItem]] = {c: [] for c in CategoryId}
        for key, items in (initial or {}).items():
            for item in items or []:
                self.add(key, item)

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def resolve_category(category_id: Union[CategoryId, str]) -> CategoryId:
        category = coerce_category(category_id)
        if category is None:
            raise UnknownCategoryError(f"Unknown cost category: {category_id!r}")
        return category

    def _index_of(self, category: CategoryId, item_id: str) -> Optional[int]:
        for idx, existing in enumerate(self._items[category]):
            if existing.id == item_id:
                return idx
        return None

    def _coerce_item(self, category: CategoryId, item: Any) -> LineItem:
        shape = CATEGORY_SHAPE[category]
        if isinstance(item, LINE_ITEM_TYPES[shape]):
            values = {f.name: getattr(item, f.name) for f in dataclasses.fields(item)}
        elif isinstance(item, Mapping):
            values = dict(item)
        else:
            # A line item of another shape: carry over whatever fields match.
            values = {
                f.name: getattr(item, f.name)
                for f in dataclasses.fields(item)
            } if dataclasses.is_dataclass(item) else {}
        return new_line_item(category, item_id=values.get("id"), **values)

    # -- operations -----------------------------------------------------------

    def add(self, category_id: Union[CategoryId, str], item: Any) -> LineItem:
        """Append ``item`` (a line item or a mapping) to the category; an existing id is replaced in place."""
        category = self.resolve_category(category_id)
        stored = self._coerce_item(category, item)
        idx = self._index_of(category, stored.id)
        if idx is None:
            self._items[category].append(stored)
        else:
            self._items[category][idx] = stored
        return stored

    def update(
        self, category_id: Union[CategoryId, str], item_id: str, patch: Mapping[str, Any]
    ) -> Optional[LineItem]:
        """Apply ``patch`` to the item with ``item_id``. Unknown ids return None."""
        category = self.resolve_category(category_id)
        idx = self._index_of(category, item_id)
        if idx is None:
            logger.debug("update skipped: %s has no item %s", category.value, item_id)
            return None
        clean = coerce_item_fields(CATEGORY_SHAPE[category], dict(patch))
        updated = dataclasses.replace(self._items[category][idx], **clean)
        self._items[category][idx] = updated
        return updated

    def remove(self, category_id: Union[CategoryId, str], item_id: str) -> bool:
        """Drop the item with ``item_id``. Returns False when nothing was removed."""
        category = self.resolve_category(category_id)
        idx = self._index_of(category, item_id)
        if idx is None:
            return False
        del self._items[category][idx]
        return True

    def list(self, category_id: Union[CategoryId, str]) -> List[LineItem]:
        return list(self._items[self.resolve_category(category_id)])

    # -- snapshots ------------------------------------------------------------

    def snapshot(self) -> Dict[CategoryId, Tuple[LineItem, ...]]:
        return {c: tuple(items) for c, items in self._items.items()}

    def copy(self) -> "LineItemStore":
        clone = LineItemStore()
        clone._items = {c: list(items) for c, items in self._items.items()}
        return clone

    def item_count(self) -> int:
        return sum(len(items) for items in self._items.values())

    def __iter__(self) -> Iterator[CategoryId]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LineItemStore):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        populated = {c.value: len(items) for c, items in self._items.items() if items}
        return f"LineItemStore({populated})"
