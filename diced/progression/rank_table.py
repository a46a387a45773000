"""
Rank table - The ordered ladder of ranks.

Ranks form a strict total order: the position in the table is the rank
index, and "higher" means a larger index. Lookups by unknown titles raise
RankNotFoundError; callers abort the operation instead of defaulting.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from diced.models.rank_definition import RankDefinition
from diced.utils.constants import RANK_TABLE_DATA
from diced.utils.exceptions import RankNotFoundError


class RankTable:
    """
    Immutable, ordered collection of RankDefinitions.

    Example usage:
        table = RankTable.default()
        table.total_hours_before_rank("Culinary Student")  # 55
        table.is_higher("Line Cook", "Home Cook")          # True
    """

    def __init__(self, ranks: Sequence[RankDefinition]):
        """
        Build the table and validate its ordering.

        Args:
            ranks: Rank definitions in ascending order

        Raises:
            ValueError: If the table is empty, titles repeat, a next_rank
                does not name the following entry, or the last rank is
                not terminal
        """
        if not ranks:
            raise ValueError("Rank table cannot be empty")

        self._ranks: Tuple[RankDefinition, ...] = tuple(ranks)
        self._index: Dict[str, int] = {}

        for position, rank in enumerate(self._ranks):
            if rank.title in self._index:
                raise ValueError(f"Duplicate rank title: {rank.title}")
            self._index[rank.title] = position

            expected_next = (
                self._ranks[position + 1].title
                if position + 1 < len(self._ranks) else None
            )
            if rank.next_rank != expected_next:
                raise ValueError(
                    f"Rank '{rank.title}' points to '{rank.next_rank}', "
                    f"expected '{expected_next}'"
                )

        # Hours an attribute must hold before entering each rank
        self._hours_before: Dict[str, float] = {}
        running_total = 0.0
        for rank in self._ranks:
            self._hours_before[rank.title] = running_total
            running_total += rank.attribute_hours_required

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[str, str, Sequence[float]]]) -> 'RankTable':
        """
        Build a table from (title, color_tier, level_hours) rows.

        next_rank links are derived from the row order.
        """
        rows = list(rows)
        ranks: List[RankDefinition] = []
        for position, (title, color_tier, level_hours) in enumerate(rows):
            next_rank = rows[position + 1][0] if position + 1 < len(rows) else None
            ranks.append(RankDefinition(
                title=title,
                color_tier=color_tier,
                level_hours=tuple(level_hours),
                next_rank=next_rank,
            ))
        return cls(ranks)

    @classmethod
    def default(cls) -> 'RankTable':
        """The canonical DICED rank table."""
        return cls.from_rows(RANK_TABLE_DATA)

    def get(self, rank_title: Optional[str]) -> RankDefinition:
        """
        Look up a rank by title.

        Raises:
            RankNotFoundError: If the title is not in the table
        """
        return self._ranks[self.rank_index(rank_title)]

    def rank_index(self, rank_title: Optional[str]) -> int:
        """
        Position of a rank in the ladder.

        Raises:
            RankNotFoundError: If the title is not in the table
        """
        try:
            return self._index[rank_title]
        except KeyError:
            raise RankNotFoundError(rank_title) from None

    def is_higher(self, rank_a: str, rank_b: str) -> bool:
        """True if rank_a is strictly above rank_b."""
        return self.rank_index(rank_a) > self.rank_index(rank_b)

    def total_hours_before_rank(self, rank_title: str) -> float:
        """
        Sum of attribute_hours_required of every rank below rank_title.

        Raises:
            RankNotFoundError: If the title is not in the table
        """
        self.rank_index(rank_title)
        return self._hours_before[rank_title]

    def hours_to_level(self, rank_title: str, level: int) -> float:
        """
        Absolute hours needed to finish the first `level` levels of a rank.

        Levels beyond the rank's level count are ignored.
        """
        rank = self.get(rank_title)
        within_rank = sum(rank.level_hours[:max(level, 0)])
        return self.total_hours_before_rank(rank_title) + within_rank

    def next_rank(self, rank_title: str) -> Optional[RankDefinition]:
        """The rank after rank_title, or None at the terminal rank."""
        rank = self.get(rank_title)
        return self.get(rank.next_rank) if rank.next_rank else None

    @property
    def first_rank(self) -> RankDefinition:
        return self._ranks[0]

    @property
    def titles(self) -> List[str]:
        return [rank.title for rank in self._ranks]

    def __iter__(self) -> Iterator[RankDefinition]:
        return iter(self._ranks)

    def __len__(self) -> int:
        return len(self._ranks)

    def __contains__(self, rank_title: object) -> bool:
        return rank_title in self._index

    def __repr__(self) -> str:
        return f"RankTable({' < '.join(self.titles)})"
