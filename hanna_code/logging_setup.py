import logging

LOGGER_NAME = "hanna_code"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the shared ``hanna_code`` logger with a stream handler."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
