TRUST_SCORE_MIN = 0.0
TRUST_SCORE_MAX = 1.0
TRUST_SCORE_DEFAULT = 1.0
TRUST_APPROVAL_DELTA = 0.02
TRUST_REJECTION_DELTA = 0.05

SHADOW_BAN_MIN_SUBMISSIONS = 5
SHADOW_BAN_REJECTION_RATE = 0.7
