"""
Roster lookup for goal attribution

Read-only: live capture never changes roster data.
"""
from contextlib import closing
from typing import Optional

from sqlalchemy.orm import sessionmaker

from models import Match, Player


class SqlRoster:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_player(self, match_id: str, player_id: str) -> Optional[Player]:
        """
        Return the player if they are an active member of the match's team.

        Returns:
            Player, or None for an unknown match, another team's player or an
            inactive player
        """
        with closing(self._session_factory()) as db:
            player = (
                db.query(Player)
                .join(Match, Match.team_id == Player.team_id)
                .filter(
                    Match.id == match_id,
                    Player.id == player_id,
                    Player.active.is_(True),
                )
                .first()
            )
            if player is not None:
                db.expunge(player)
            return player
