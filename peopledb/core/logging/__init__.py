from peopledb.core.logging.logger import default_formatter, get_logger, setup_logger

__all__ = ["default_formatter", "get_logger", "setup_logger"]
