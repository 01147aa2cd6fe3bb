from typing import Optional

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

LATEST_POOLS_CACHE_KEY = "latest_pools"

# Ethos score bands used by the dashboard
VERIFIED_SCORE = 1400
CAUTION_SCORE = 1200

TIME_AGO_UNITS = (
    (86_400, "d"),
    (3_600, "h"),
    (60, "m"),
)


def score_tier(score: Optional[int]) -> str:
    if score is None:
        return "unknown"
    if score > VERIFIED_SCORE:
        return "verified"
    if score >= CAUTION_SCORE:
        return "caution"
    return "risky"
