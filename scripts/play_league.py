#!/usr/bin/env python3
"""
League walkthrough: create league → seat round 1 → enter scores → promote/relegate.
Run from project root: python3 scripts/play_league.py --rounds 3 --seed 7
"""
from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mahjong_league.logging_config import configure_logging
from mahjong_league.persistence import LeagueRepository, UserRepository, get_connection, init_db, set_db_path
from mahjong_league.services import SessionCoordinator
from mahjong_league.services.scoring import TOTAL_SCORE
from mahjong_league.shuffle import FisherYatesShuffle


def random_table_scores(rng: random.Random) -> list[int]:
    """Four final scores in hundreds that total 100,000."""
    cuts = sorted(rng.randint(0, TOTAL_SCORE // 100) for _ in range(3))
    bounds = [0, *cuts, TOTAL_SCORE // 100]
    return [(bounds[i + 1] - bounds[i]) * 100 for i in range(4)]


def run(rounds: int, seed: int | None) -> None:
    # Use data/play_league.db for demo (distinct from league.db)
    db_path = PROJECT_ROOT / "data" / "play_league.db"
    db_path.unlink(missing_ok=True)
    set_db_path(db_path)
    init_db(db_path=db_path)

    rng = random.Random(seed)
    conn = get_connection()
    try:
        admin_id = UserRepository().create(conn, name="Demo Admin")
        league, players = LeagueRepository().create_with_players(
            conn, "Demo League", admin_id, [f"Player {i:02d}" for i in range(1, 17)]
        )
        print(f"Created league: {league.name} with {len(players)} players")

        coordinator = SessionCoordinator(shuffle=FisherYatesShuffle(seed))
        for _ in range(rounds):
            rnd = coordinator.create_next_round(conn, league.id, admin_id)
            print(f"\nRound {rnd.round_number}")
            for table in rnd.tables:
                scores = random_table_scores(rng)
                entries = [{"seat_id": s.id, "final_score": fs} for s, fs in zip(table.seats, scores)]
                coordinator.submit_table_scores(conn, table.id, admin_id, entries)

            scored = coordinator.list_rounds(conn, league.id, admin_id)[0]
            for table in scored.tables:
                print(f"  Table {table.table_number} ({table.table_type.value})")
                for seat in sorted(table.seats, key=lambda s: s.rank or 0):
                    print(
                        f"    #{seat.rank} {seat.wind.value:<5} {seat.player_name:<10} "
                        f"{seat.final_score:>7,} {seat.score_pt:>6} +{seat.rank_pt:<3} = {seat.total_pt}"
                    )
    finally:
        conn.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Play a demo mahjong league with random scores.")
    parser.add_argument("--rounds", type=int, default=3, help="Number of rounds to play")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for reproducibility")
    parser.add_argument("--log-level", default=None, help="Log level (default $MAHJONG_LOG_LEVEL or INFO)")
    args = parser.parse_args()
    configure_logging(args.log_level)
    run(rounds=args.rounds, seed=args.seed)


if __name__ == "__main__":
    main()
