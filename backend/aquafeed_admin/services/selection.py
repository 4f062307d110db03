"""Row selection for bulk actions."""

from typing import Iterable, Iterator


class SelectionSet:
    """Ordered set of selected row ids.

    The selection outlives the current page: selecting rows on page 2 keeps
    whatever was selected on page 1.
    """

    def __init__(self, ids: Iterable[str] = ()):
        self._ids: dict[str, None] = dict.fromkeys(i for i in ids if i)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"SelectionSet({list(self._ids)!r})"

    def toggle(self, row_id: str):
        if row_id in self._ids:
            del self._ids[row_id]
        else:
            self._ids[row_id] = None

    def clear(self):
        self._ids.clear()

    def discard(self, ids: Iterable[str]):
        for row_id in ids:
            self._ids.pop(row_id, None)

    def visible_selected_count(self, visible_ids: Iterable[str]) -> int:
        return sum(1 for row_id in visible_ids if row_id in self._ids)

    def all_visible_selected(self, visible_ids: Iterable[str]) -> bool:
        visible = list(visible_ids)
        return bool(visible) and self.visible_selected_count(visible) == len(visible)

    def toggle_all(self, visible_ids: Iterable[str]):
        """Select every visible row, or deselect them if all already are."""
        visible = list(visible_ids)
        if not visible:
            return
        if self.all_visible_selected(visible):
            self.discard(visible)
        else:
            for row_id in visible:
                self._ids.setdefault(row_id, None)

    def to_list(self) -> list[str]:
        return list(self._ids)
