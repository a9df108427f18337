"""Points, levels, streaks and the leaderboard."""
