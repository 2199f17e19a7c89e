"""
Leaderboard ranking: each user's best attempt, best first.
Higher score wins; on equal scores the faster attempt wins.
"""

from typing import Dict, List, Sequence, Tuple

from models.quiz_models import LeaderboardEntry


def ranking_key(entry: LeaderboardEntry) -> Tuple[int, float]:
    return (-entry.score, entry.elapsed_time)


class LeaderboardRanker:
    def best_per_user(self, entries: Sequence[LeaderboardEntry]) -> List[LeaderboardEntry]:
        best: Dict[str, LeaderboardEntry] = {}
        for entry in entries:
            current = best.get(entry.user_id)
            if current is None or ranking_key(entry) < ranking_key(current):
                best[entry.user_id] = entry
        return list(best.values())

    def rank(self, entries: Sequence[LeaderboardEntry], top_n: int = 10) -> List[LeaderboardEntry]:
        if top_n <= 0:
            return []
        return sorted(self.best_per_user(entries), key=ranking_key)[:top_n]
