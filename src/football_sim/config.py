"""Static simulation configuration constants."""

# Match outcome model.
HOME_ADVANTAGE = 1.6
BASE_GOAL_RATE = 1.25
HOME_RATE_DIVISOR = 18.0
AWAY_RATE_DIVISOR = 22.0
HOME_RATE_BOUNDS: tuple[float, float] = (0.2, 3.2)
AWAY_RATE_BOUNDS: tuple[float, float] = (0.2, 3.0)
MAX_GOALS = 7
DEFAULT_CLUB_RATING = 60.0
STRENGTH_JITTER = 1.0

# Seasons.
DEFAULT_SEASON_ID = "2025_2026"
DEFAULT_YEAR_START = 2025
FAST_FORWARD_ROUND_GUARD = 200

# Promotion/relegation.
DEFAULT_TIER_SLOTS = 4

# Transfers.
ACCEPT_RATIO = 0.90
COUNTER_RATIO = 0.70
COUNTER_FEE_RATIO = 0.95
COUNTER_WAGE_RATIO = 1.05
OFFER_LIFETIME_ROUNDS = 3
TRANSFER_WINDOWS: tuple[tuple[int, int, str], ...] = (
    (0, 5, "Pre-season window"),
    (18, 23, "Mid-season window"),
)
MAX_INBOUND_OFFERS_PER_ROUND = 2
# Cumulative roll thresholds for 0, 1 or 2 inbound offers in a round.
INBOUND_OFFER_ROLLS: tuple[float, float] = (0.35, 0.80)
INBOUND_FEE_RANGE: tuple[float, float] = (0.80, 1.30)
INBOUND_WAGE_RANGE: tuple[float, float] = (0.90, 1.25)
DEFAULT_PLAYER_WAGE = 150_000

# Economy.
DEFAULT_STARTING_CASH = 50_000_000
WEEKLY_STAFF_COST = 250_000
WEEKLY_MAINTENANCE_COST = 120_000
CONTINENTAL_MATCH_FEE = 400_000
CONTINENTAL_WIN_BONUS = 250_000

# Continental calendar.
CONTINENTAL_FIRST_ROUND_INDEX = 1
CONTINENTAL_EVERY_ROUNDS = 2
CONTINENTAL_FAST_FORWARD_GUARD = 64

# Squad generation.
SQUAD_POSITIONS: tuple[tuple[str, int], ...] = (("GK", 3), ("DEF", 8), ("MID", 9), ("ATT", 5))
PLAYER_VALUE_PER_OVERALL = 900_000
YOUNG_PLAYER_VALUE_BONUS = 1.2
# Division id prefix -> base overall for generated players; first match wins.
DIVISION_BASE_OVERALL: tuple[tuple[str, int], ...] = (
    ("BRA_SERIE_A", 70),
    ("BRA_SERIE_B", 66),
    ("ENG_", 75),
    ("ESP_", 74),
    ("ITA_", 73),
    ("GER_", 73),
    ("FRA_", 72),
)
GENERATED_AGE_RANGE: tuple[int, int] = (17, 35)
GENERATED_OVERALL_SPREAD: tuple[int, int] = (-3, 7)
GENERATED_OVERALL_BOUNDS: tuple[int, int] = (50, 90)
YOUNG_PLAYER_MAX_AGE = 23
DEFAULT_BASE_OVERALL = 65
