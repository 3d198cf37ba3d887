import random
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

MAX_NAME_LENGTH = 32
_COLOR_RE = re.compile(r'^#[0-9a-fA-F]{6}$')


@dataclass
class Player:
    id: str
    name: str
    color: str

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
        }


class PlayerRegistry:
    """Connection id -> Player for every live connection.

    The registry only tracks membership; broadcasting the list is left to
    the gateway.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._players: Dict[str, Player] = {}
        self._rng = rng or random.Random()

    def register(self, sid: str, requested_name=None, color=None) -> Player:
        name = requested_name.strip() if isinstance(requested_name, str) else ''
        if not name:
            name = self.default_name()
        name = name[:MAX_NAME_LENGTH]
        if not (isinstance(color, str) and _COLOR_RE.match(color)):
            color = self.random_color()

        player = self._players.get(sid)
        if player is None:
            player = Player(id=sid, name=name, color=color)
            self._players[sid] = player
        else:
            player.name = name
            player.color = color
        return player

    def unregister(self, sid: str) -> Optional[Player]:
        return self._players.pop(sid, None)

    def get(self, sid: str) -> Optional[Player]:
        return self._players.get(sid)

    def players(self) -> List[Player]:
        return list(self._players.values())

    def ids(self):
        return set(self._players)

    def to_list(self):
        return [p.to_dict() for p in self._players.values()]

    def default_name(self) -> str:
        # Random suffix only makes collisions less likely, not impossible
        return f"Player{self._rng.randrange(1000)}"

    def random_color(self) -> str:
        return f"#{self._rng.randrange(0x1000000):06x}"

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, sid) -> bool:
        return sid in self._players
