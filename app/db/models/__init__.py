from app.db.models.badges import BadgeDefinition, UserBadge
from app.db.models.outbox_events import OutboxEvent
from app.db.models.redemptions import Redemption
from app.db.models.rewards import Reward
from app.db.models.sponsors import Sponsor
from app.db.models.spot_reports import SpotReport
from app.db.models.spots import Spot
from app.db.models.users import User
from app.db.models.verification_logs import VerificationLog
from app.db.models.xp_history import XpHistory
from app.db.models.xp_transactions import XpTransaction

__all__ = [
    "BadgeDefinition",
    "OutboxEvent",
    "Redemption",
    "Reward",
    "Sponsor",
    "Spot",
    "SpotReport",
    "User",
    "UserBadge",
    "VerificationLog",
    "XpHistory",
    "XpTransaction",
]
