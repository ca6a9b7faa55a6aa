import logging
import logging.config
import sys

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,

    'formatters': {
        'json': {
            '()': 'pythonjsonlogger.json.JsonFormatter',
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s',
            'json_ensure_ascii': False,
        },
        'console': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },

    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'json',
            'stream': sys.stdout,
        },
    },

    'loggers': {
        'werkzeug': {'level': 'WARNING'},
        'urllib3': {'level': 'WARNING'},
    },

    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
}


def configure_logging(level='INFO', fmt='json'):
    """
    Configure logging for the application.

    Args:
        level: root log level name.
        fmt: 'json' (python-json-logger) or 'console'.
    """
    config = dict(LOGGING_CONFIG)
    config['handlers'] = {
        'console': dict(LOGGING_CONFIG['handlers']['console'],
                        formatter='console' if fmt == 'console' else 'json'),
    }
    config['root'] = dict(LOGGING_CONFIG['root'], level=level)

    logging.config.dictConfig(config)
    logger = logging.getLogger(__name__)
    logger.debug('Logging configured', extra={'level': level, 'format': fmt})
    return logger
