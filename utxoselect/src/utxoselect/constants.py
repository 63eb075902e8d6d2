"""
Coin selection defaults.

Amounts are in the smallest monetary unit (microunits). Search budgets are
counted in explored nodes / search rounds, never in wall-clock time, so results
are reproducible for a given snapshot.
"""

from __future__ import annotations

# Outputs in a standard payment: the payment itself plus a potential change output
PAYMENT_OUTPUTS = 1
STANDARD_OUTPUT_COUNT = PAYMENT_OUTPUTS + 1

# Request limits
DEFAULT_MAX_INPUTS = 100
DEFAULT_DUST_THRESHOLD = 0

# Branch and bound: explored decision-tree frames before giving up
BNB_MAX_ITERATIONS = 100_000
# Stop as soon as the best change is within this many units (0 = exact only)
BNB_WASTE_TOLERANCE = 0

# Knapsack: random search rounds
KNAPSACK_ITERATIONS = 1_000

# Privacy-aware search
PRIVACY_SAMPLES = 200
PRIVACY_SEARCH_CAP = 10_000
# Loss above this is considered too linkable to use
PRIVACY_MAX_LOSS = 2.5
# Values that are a multiple of this look hand-picked (1 unit = 1_000_000 microunits)
ROUND_AMOUNT_UNIT = 1_000_000

# Post-selection refinement
OPTIMIZATION_MAX_SWAP_ATTEMPTS = 500

# Above this many candidates branch and bound is unlikely to finish its search,
# so knapsack is added to the fallback chain
LARGE_SNAPSHOT_THRESHOLD = 20

# Transaction weight model used by weight_fee()
# Base transaction (kernel + overhead), per input and per output weights in grams
TRANSACTION_BASE_WEIGHT = 100
INPUT_WEIGHT = 100
OUTPUT_WEIGHT = 50
