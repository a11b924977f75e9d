from app.workers.tasks.moderation_maintenance import (
    run_pending_spot_verification,
    run_reported_spot_rescan,
)

__all__ = [
    "run_pending_spot_verification",
    "run_reported_spot_rescan",
]
