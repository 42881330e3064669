import sys
from typing import Any

from kink import di
from loguru import logger
from loki_logger_handler.formatters.loguru_formatter import (  # type: ignore [import-untyped]
    LoguruFormatter,
)
from loki_logger_handler.loki_logger_handler import (  # type: ignore [import-untyped]
    LokiLoggerHandler,
)
from opentelemetry.trace import get_current_span

from lgtm_stack.core.config import Configuration
from lgtm_stack.core.paths import ROOT_PATH
from lgtm_stack.domain.common.utils import StringUtils

_BOUND_KEYS = ('service', 'name')


def _inject_trace_context(record: dict[str, Any]) -> None:
    """Populate ``trace_id`` / ``span_id`` in ``record['extra']`` if absent."""
    span_ctx = get_current_span().get_span_context()

    if span_ctx and span_ctx.trace_id:
        record.setdefault('extra', {})
        record['extra'].setdefault('trace_id', f'{span_ctx.trace_id:032x}')
        record['extra'].setdefault('span_id', f'{span_ctx.span_id:016x}')


def format_log_record(record: dict[str, Any]) -> str:
    """Custom formatter for loguru records."""
    _inject_trace_context(record)
    extra = record.get('extra', {})

    fmt = (
        '<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | '
        '<level>{level: <8}</level> | '
        '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>'
    )

    if 'trace_id' in extra:
        fmt += ' | <blue>{extra[trace_id]}</blue>/<yellow>{extra[span_id]}</yellow>'

    if 'event' in extra:
        fmt += ' | <yellow>[{extra[event]:<12}]</yellow>'

    fmt += ' | <level>{message}</level>'

    details = {
        key: value
        for key, value in extra.items()
        if key not in {'trace_id', 'span_id', 'event', *_BOUND_KEYS}
    }
    if details:
        record['extra']['details'] = details
        fmt += '\n<white>{extra[details]}</white>'

    if record.get('exception'):
        fmt += '\n{exception}'

    return fmt + '\n'


def setup_loki_handler(config: Configuration) -> None:
    """Ship records to Loki through ``loki_logger_handler``."""
    auth = None
    if config.log.loki_username and config.log.loki_password:
        auth = (
            config.log.loki_username,
            config.log.loki_password.get_secret_value(),
        )

    loki_handler = LokiLoggerHandler(
        url=str(config.log.loki_url),
        labels={
            'app': StringUtils.service_name(),
            'service_environment': config.app_environment.lower(),
            'service_name': StringUtils.service_name(),
            'service_version': config.app_version,
        },
        auth=auth,
        timeout=10,
        compressed=True,
        default_formatter=LoguruFormatter(),
        enable_self_errors=True,
    )

    logger.add(
        loki_handler, level=config.log.level, format='{message}', serialize=True
    )


# noinspection PyTypeChecker
def setup_logging(config: Configuration | None = None) -> None:
    """Setup Loguru logging with configuration."""
    config = config or di[Configuration]
    log_config = config.log

    # Remove default handler
    logger.remove()
    logger.configure(patcher=_inject_trace_context)  # type: ignore [arg-type]

    json_console = (
        log_config.json_console
        if log_config.json_console is not None
        else not config.app_debug
    )

    # console logging
    if json_console:
        logger.add(
            sys.stderr,
            level=log_config.level,
            serialize=True,
            backtrace=False,
            diagnose=False,
            enqueue=True,
        )
    else:
        logger.add(
            sys.stderr,
            level='DEBUG' if config.app_environment == 'local' else log_config.level,
            format=format_log_record,  # type: ignore [arg-type]
            colorize=True,
            backtrace=True,
            diagnose=config.app_debug,
            enqueue=True,
        )

    # file logging
    if log_config.to_file:
        log_file_path = ROOT_PATH / log_config.file_path
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_file_path,
            level=log_config.level,
            format=format_log_record,  # type: ignore [arg-type]
            rotation='100 MB',
            retention='30 days',
            compression='gz',
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

        error_log_path = log_file_path.with_name(
            f'{log_file_path.stem}.error{log_file_path.suffix}'
        )
        logger.add(
            error_log_path,
            level='ERROR',
            format=format_log_record,  # type: ignore [arg-type]
            rotation='100 MB',
            retention='30 days',
            compression='gz',
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    # loki handler
    if log_config.to_loki:
        setup_loki_handler(config)


def get_logger(name: str | None = None) -> Any:
    """Get a Loguru logger instance."""
    return logger.bind(name=name) if name else logger
