from app.actions.actions import Actions, build_actions
from app.config.settings import Settings
from app.database.connection import apply_schema, close_pool, init_pool
from app.logging.logger import Log


def bootstrap(settings: Settings | None = None) -> Actions:
    """Initialize logging and the pool, create tables if configured, wire services.

    The caller owns the pool afterwards and closes it with close_pool().
    """
    settings = settings or Settings()
    Log.configure(settings.log_level)
    init_pool(settings)
    if settings.apply_schema_on_start:
        apply_schema()
        Log.info("Database schema applied")
    actions = build_actions()
    Log.info(f"Report registry ready ({settings.app_env})")
    return actions


def main() -> None:
    """Entry point: initialize pool -> apply schema -> close."""
    try:
        bootstrap()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
