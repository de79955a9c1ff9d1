"""Logging and observability setup using Pydantic Logfire."""

import logging
import sys

from pria.config.settings import Settings, settings as default_settings


class AzureDevOpsFormatter(logging.Formatter):
    """Prefix warnings and errors with Azure Pipelines logging commands.

    The pipeline UI surfaces ``##vso[task.logissue ...]`` lines as warnings
    and errors on the run summary.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return f"##vso[task.logissue type=error]{message}"
        if record.levelno >= logging.WARNING:
            return f"##vso[task.logissue type=warning]{message}"
        if record.levelno <= logging.DEBUG:
            return f"##vso[task.debug]{message}"
        return message


def setup_logging(settings: Settings | None = None) -> None:
    """Configure application logging.

    Uses the Azure DevOps formatter unless running in dev mode. Debug output
    is enabled by ``System.Debug`` or the ``verbose_logging`` input.
    """
    settings = settings or default_settings

    log_level = logging.DEBUG if settings.debug_enabled else getattr(logging, settings.log_level)
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler(sys.stdout)
    if settings.dev_mode:
        handler.setFormatter(logging.Formatter(log_format))
    else:
        handler.setFormatter(AzureDevOpsFormatter("%(name)s - %(message)s"))

    logging.basicConfig(
        level=log_level,
        handlers=[handler],
        force=True,  # Reconfigure if already setup
    )

    # Reduce noise from verbose libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("git").setLevel(logging.WARNING)


def setup_observability(settings: Settings | None = None) -> None:
    """Setup logging and observability with Logfire instrumentation.

    Configures standard logging and optionally enables Logfire for
    tracing of model calls and HTTP requests if a token is configured.
    """
    settings = settings or default_settings
    setup_logging(settings)

    logger = logging.getLogger(__name__)

    if settings.logfire_token:
        try:
            import logfire

            logfire.configure(token=settings.logfire_token)
            logfire.instrument_pydantic_ai()
            logfire.instrument_httpx()

            logger.info("Logfire observability enabled")

        except ImportError:
            logger.warning(
                "Logfire package not installed. Install with: pip install 'pr-inspection-assistant[logfire]'"
            )
        except Exception as e:
            logger.error(f"Failed to setup Logfire observability: {e}")
    else:
        logger.debug("Logfire token not configured, skipping observability setup")
