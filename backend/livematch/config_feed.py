"""Fixed timing and value constants for the odds feed, store and coordinator."""

# Update feed cadence
UPDATE_TICK_SECONDS = 1.0
MAX_UPDATES_PER_TICK = 10
INTER_UPDATE_DELAY_SECONDS = 0.1

# Odds perturbation (a tick moves each side by at most this much)
ODDS_CHANGE_MAX = 0.15
ODDS_FLOOR = 1.1
ODDS_CEILING = 5.0
ODDS_DECIMALS = 2

# Coordinator
MATCHES_DEBOUNCE_SECONDS = 0.15
METRICS_LOG_INTERVAL_SECONDS = 30

# Bootstrap fallback data set, used when the fetch collaborator fails
FALLBACK_MATCHES: list[dict] = [
    {"id": 1001, "team_a": "Eagles", "team_b": "Tigers", "start_time": "2025-07-04T13:00:00Z"},
    {"id": 1002, "team_a": "Lions", "team_b": "Bears", "start_time": "2025-07-04T14:30:00Z"},
    {"id": 1003, "team_a": "Wolves", "team_b": "Hawks", "start_time": "2025-07-04T16:00:00Z"},
    {"id": 1004, "team_a": "Sharks", "team_b": "Dolphins", "start_time": "2025-07-04T17:30:00Z"},
    {"id": 1005, "team_a": "Falcons", "team_b": "Ravens", "start_time": "2025-07-04T19:00:00Z"},
]
FALLBACK_ODDS: list[dict] = [
    {"id": 1001, "team_a_odds": 1.95, "team_b_odds": 2.10},
    {"id": 1002, "team_a_odds": 1.85, "team_b_odds": 2.25},
    {"id": 1003, "team_a_odds": 2.05, "team_b_odds": 1.90},
    {"id": 1004, "team_a_odds": 1.75, "team_b_odds": 2.35},
    {"id": 1005, "team_a_odds": 2.15, "team_b_odds": 1.80},
]
