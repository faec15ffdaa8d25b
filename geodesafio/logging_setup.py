import logging


def configure_logging(app) -> None:
    """Console logging for the app and the service modules, level from LOG_LEVEL."""
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s")

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    # Replace rather than add, so the reloader / repeated create_app() calls don't duplicate lines
    pkg = logging.getLogger("geodesafio")
    pkg.setLevel(level)
    pkg.handlers = [console]

    app.logger.setLevel(level)
    app.logger.debug("Logging configured for level %s", level_name)
