from stackline.infra.logging.console import ConsoleLogger
from stackline.infra.logging.logfire import LogfireLogger, configure_logfire

__all__ = ["ConsoleLogger", "LogfireLogger", "configure_logfire"]
