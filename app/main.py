from app.api.operations import EngineOperations
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import Database


def create_operations() -> EngineOperations:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)
    return EngineOperations(Database.from_settings(settings))
