"""Reward, decay and scoring constants for the contribution engine.

Coin rewards per contribution type:
1. Review: 30
2. Plug check: 25
3. Photo: 20
4. Status update: 15
5. Wait time: 10

Rank thresholds (total coins): Bronze 0, Silver 500, Gold 1500, Platinum 3000.

Confidence decays linearly to zero over 30 days. Staleness is type-dependent
and only used to prompt re-validation.
"""

from typing import Dict

# Base coins per contribution type
# Key: ContributionType value
CONTRIBUTION_REWARDS: Dict[str, int] = {
    "PHOTO": 20,
    "REVIEW": 30,
    "WAIT_TIME": 10,
    "PLUG_CHECK": 25,
    "STATUS_UPDATE": 15,
}

CONTRIBUTION_DISPLAY_NAMES: Dict[str, str] = {
    "PHOTO": "Add Photo",
    "REVIEW": "Write Review",
    "WAIT_TIME": "Report Wait Time",
    "PLUG_CHECK": "Verify Plug",
    "STATUS_UPDATE": "Update Status",
}

FIRST_TO_CHARGER_BONUS = 50
CHECK_IN_REWARD = 5
VALIDATION_REWARD = 5
MAX_VALIDATIONS_PER_DAY = 10

# Minimum total coins per rank, strictly increasing
RANK_THRESHOLDS: Dict[str, int] = {
    "BRONZE": 0,
    "SILVER": 500,
    "GOLD": 1500,
    "PLATINUM": 3000,
}

# Confidence score weights
VOTE_WEIGHT = 0.7
VOLUME_WEIGHT = 0.3
VOLUME_SATURATION = 100  # endorsements for full volume bonus
DECAY_PERIOD_HOURS = 720  # 30 days

# Staleness thresholds in hours
STALE_THRESHOLD_HOURS: Dict[str, int] = {
    "WAIT_TIME": 2,
    "STATUS_UPDATE": 2,
    "PLUG_CHECK": 7 * 24,
}
DEFAULT_STALE_THRESHOLD_HOURS = 720

# Confidence level cut points
HIGH_CONFIDENCE_THRESHOLD = 0.7
MEDIUM_CONFIDENCE_THRESHOLD = 0.4
MIN_ENDORSEMENTS = 3  # below this a contribution still asks for validation

# Reliability components (each capped at COMPONENT_MAX)
COMPONENT_MAX = 20.0
PHOTO_TARGET = 5
REVIEW_TARGET = 10
RATING_MULTIPLIER = 4.0
FRESHNESS_TARGET = 5
FRESHNESS_WINDOW_DAYS = 7
CONFIDENCE_WINDOW_DAYS = 30

# Trust badge cut points on the 0-100 total, evaluated top-down
TRUST_BADGE_THRESHOLDS: Dict[str, float] = {
    "EXCELLENT": 80.0,
    "GOOD": 60.0,
    "FAIR": 30.0,
}

RECENT_CONTRIBUTIONS_LIMIT = 10
