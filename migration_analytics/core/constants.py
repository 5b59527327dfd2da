# ==============================================================================
# PROFIT DERIVATION
# ==============================================================================
# Entry baselines below this are recording artifacts, not real entry prices.
MIN_ENTRY_SOL = 0.05

# ==============================================================================
# GROUPING
# ==============================================================================
BUNDLE_SOL_PRECISION = 2                 # Decimal places for bundle total buy SOL
BUY_AMOUNT_PRECISION = 2                 # Decimal places for mint buy amount
RATE_PRECISION = 2                       # Decimal places for % rates

DEFAULT_GROUP_LABEL = "all"

# ==============================================================================
# THRESHOLD SIMULATION
# ==============================================================================
# Candidate sell points as fractions of the group's average rise (ascending)
THRESHOLD_MULTIPLIERS = (0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)

# Risk from the optimal candidate's win rate
WIN_RATE_RISK_BANDS = {
    "high_below": 0.6,       # win rate < 0.6 -> HIGH
    "medium_below": 0.75,    # 0.6 <= win rate < 0.75 -> MEDIUM, else LOW
}

# Risk from coefficient of variation of rise
CV_RISK_BANDS = {
    "high_above": 0.5,       # cv > 0.5 -> HIGH
    "medium_from": 0.3,      # 0.3 <= cv <= 0.5 -> MEDIUM, else LOW
}

RISK_LOW = "LOW"
RISK_MEDIUM = "MEDIUM"
RISK_HIGH = "HIGH"

# ==============================================================================
# RANKING
# ==============================================================================
TOP_GROUPS_MIN_TOKENS = 2
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600

# Migration rate distribution buckets (label, inclusive lower bound), highest first
MIGRATION_RATE_BUCKETS = (
    ("Very High (90-100%)", 90),
    ("High (70-89%)", 70),
    ("Medium (50-69%)", 50),
    ("Low (30-49%)", 30),
    ("Very Low (0-29%)", 0),
)
