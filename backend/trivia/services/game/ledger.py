from typing import Dict, List, Tuple


class ScoreLedger:
    """Player id -> accumulated score.

    Entries are created on a player's first scoring event and only ever grow.
    Dict insertion order doubles as the tie-break for the sorted snapshot.
    """

    def __init__(self) -> None:
        self._scores: Dict[str, int] = {}

    def increment(self, player_id: str, amount: int = 1) -> int:
        if amount < 0:
            raise ValueError(f"score increments must be non-negative, got {amount}")
        self._scores[player_id] = self._scores.get(player_id, 0) + amount
        return self._scores[player_id]

    def score(self, player_id: str) -> int:
        return self._scores.get(player_id, 0)

    def clear(self) -> None:
        self._scores.clear()

    def snapshot_sorted_descending(self) -> List[Tuple[str, int]]:
        # sorted() is stable, so equal scores keep first-scored-first order
        return sorted(self._scores.items(), key=lambda item: -item[1])

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, player_id) -> bool:
        return player_id in self._scores
