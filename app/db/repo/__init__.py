from app.db.repo.badges_repo import BadgesRepo
from app.db.repo.ledger_repo import LedgerRepo
from app.db.repo.outbox_events_repo import OutboxEventsRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.rewards_repo import RewardsRepo
from app.db.repo.sponsors_repo import SponsorsRepo
from app.db.repo.spot_reports_repo import SpotReportsRepo
from app.db.repo.spots_repo import SpotsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.repo.verification_logs_repo import VerificationLogsRepo
from app.db.repo.xp_history_repo import XpHistoryRepo

__all__ = [
    "BadgesRepo",
    "LedgerRepo",
    "OutboxEventsRepo",
    "RedemptionsRepo",
    "RewardsRepo",
    "SponsorsRepo",
    "SpotReportsRepo",
    "SpotsRepo",
    "UsersRepo",
    "VerificationLogsRepo",
    "XpHistoryRepo",
]
