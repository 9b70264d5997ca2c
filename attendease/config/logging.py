"""
Logging configuration for the attendance backend.
Provides structured logging with console, rotating file and JSON handlers.
"""

import os
import logging
import logging.config
from typing import Dict, Any
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger

from attendease.config.settings import settings

LOG_DIR = settings.LOG_DIR


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        """Add custom fields to the log record"""
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = settings.ENVIRONMENT

        # Context attached through ``extra=`` by the service layer
        for key in ('operation', 'entity_ref', 'user_id', 'session_id', 'room'):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }


def _file_handler(filename: str, level: str, formatter: str) -> Dict[str, Any]:
    return {
        'level': level,
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(LOG_DIR, filename),
        'maxBytes': 10485760,  # 10MB
        'backupCount': 10,
        'formatter': formatter,
        'encoding': 'utf8',
        'delay': True,
    }


LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        },
        'json': {
            '()': CustomJsonFormatter,
            'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
        },
        'colored': {
            '()': 'colorlog.ColoredFormatter',
            'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            'log_colors': {
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        }
    },
    'handlers': {
        'console': {
            'level': 'DEBUG' if settings.DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'colored' if settings.is_development() else 'standard'
        },
        'file': _file_handler('app.log', 'INFO', 'standard'),
        'error_file': _file_handler('error.log', 'ERROR', 'standard'),
        'json_file': _file_handler('app.json.log', 'INFO', 'json'),
    },
    'loggers': {
        '': {  # Root logger
            'handlers': ['console', 'file', 'error_file', 'json_file'],
            'level': settings.LOG_LEVEL,
            'propagate': True
        },
        'attendease': {
            'handlers': ['console', 'file', 'error_file', 'json_file'],
            'level': settings.LOG_LEVEL,
            'propagate': False
        },
        'sqlalchemy.engine': {
            'handlers': ['console', 'file'],
            'level': 'WARNING',
            'propagate': False
        },
        'uvicorn': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False
        },
        'uvicorn.access': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False
        }
    }
}


def _init_sentry() -> None:
    import sentry_sdk
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_logging = LoggingIntegration(
        level=logging.INFO,  # Log INFO and above as breadcrumbs
        event_level=logging.ERROR  # Send errors as events
    )

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        integrations=[sentry_logging],
        traces_sample_rate=0.2,
        send_default_pii=False
    )


def setup_logging():
    """Configure application logging"""
    os.makedirs(LOG_DIR, exist_ok=True)
    logging.config.dictConfig(LOGGING_CONFIG)
    if settings.SENTRY_DSN:
        _init_sentry()
    logger = logging.getLogger("attendease")
    logger.info(f"Logging initialized with level: {settings.LOG_LEVEL}")
    return logger


def get_logger(name: str):
    """Get logger with context"""
    return logging.getLogger(name)
