"""Club leaderboard service: Strava sync, ghost reconciliation and ranking."""
