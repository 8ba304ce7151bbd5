from dataclasses import dataclass


@dataclass(frozen=True)
class ConnectionBinding:
    """What an identified connection is: the host of a room or a named player in it.

    Anonymous connections (nothing sent yet) have no binding at all.
    """

    room_code: str
    player_name: str | None = None

    @property
    def is_host(self) -> bool:
        return self.player_name is None
