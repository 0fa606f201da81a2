import logging
import sys

# pdfminer (under pdfplumber) logs every malformed object at DEBUG/INFO.
NOISY_LOGGERS = ("pdfminer", "botocore", "boto3", "urllib3", "httpx", "openai")


class _JobContextFilter(logging.Filter):
    """Stamps each record with the id of the job run being processed."""

    job_id: str | None = None

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "job_id"):
            record.job_id = self.job_id or "-"
        return True


class Log:
    """Centralized logging for the filing contacts worker.

    Lines are tagged with the active job id (see set_job) so one run can be
    followed through the document loop.
    """

    _logger: logging.Logger = logging.getLogger("filing_contacts")
    _context = _JobContextFilter()

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Configure the logger with the specified level and stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.addFilter(cls._context)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] [%(job_id)s] %(message)s")
            )
            cls._logger.addHandler(handler)
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    @classmethod
    def set_job(cls, job_id: str | None) -> None:
        """Tag subsequent lines with `job_id`; None clears the tag."""
        cls._context.job_id = job_id

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(message, extra=kwargs)

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Log an error together with the active traceback."""
        cls._logger.exception(message, extra=kwargs)
