"""
League access control from membership roles.
admin: create rounds and enter scores. scorer: enter scores. viewer: read only.
Authentication (who the actor is) happens before this layer.
"""
from __future__ import annotations

import sqlite3

from mahjong_league.models import MemberRole
from mahjong_league.persistence.repositories import LeagueMemberRepository

SCORE_ENTRY_ROLES = frozenset({MemberRole.ADMIN.value, MemberRole.SCORER.value})


class LeagueAccessControl:
    def __init__(self) -> None:
        self._member_repo = LeagueMemberRepository()

    def _role(self, conn: sqlite3.Connection, league_id: str, actor_id: str | None) -> str | None:
        if not actor_id:
            return None
        member = self._member_repo.get(conn, league_id, actor_id)
        return member.role if member else None

    def is_league_admin(self, conn: sqlite3.Connection, league_id: str, actor_id: str | None) -> bool:
        return self._role(conn, league_id, actor_id) == MemberRole.ADMIN.value

    def can_submit_scores(self, conn: sqlite3.Connection, league_id: str, actor_id: str | None) -> bool:
        return self._role(conn, league_id, actor_id) in SCORE_ENTRY_ROLES

    def is_league_member(self, conn: sqlite3.Connection, league_id: str, actor_id: str | None) -> bool:
        return self._role(conn, league_id, actor_id) is not None
