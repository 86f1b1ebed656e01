# app/core/logging.py
"""
Logging do serviço de catálogo.

- consola com nível colorido (só em TTY)
- ficheiro diário sem cores, com retenção em dias
- request-id por ContextVar (o motor copia o contexto para as threads de query)
- log_timing para medir queries
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

_RESET = "\033[0m"
_DIM = "\033[2m"
_NAME = "\033[94m"

# nível -> (cor, abreviatura)
LEVEL_STYLES = {
    logging.DEBUG: ("\033[36m", "DBG"),
    logging.INFO: ("\033[32m", "INF"),
    logging.WARNING: ("\033[33m", "WRN"),
    logging.ERROR: ("\033[31m", "ERR"),
    logging.CRITICAL: ("\033[1;91m", "CRT"),
}

# bibliotecas ruidosas -> variável de ambiente com o nível
QUIET_LOGGERS = {
    "sqlalchemy.engine": "SQL_LOG_LEVEL",
    "httpx": "HTTPX_LOG_LEVEL",
    "redis": "REDIS_LOG_LEVEL",
}


def _short_name(name: str) -> str:
    """catalog.usecases.list_products -> list_products; app.core.x -> core.x"""
    for prefix in ("app.", "catalog."):
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    return name.replace("usecases.", "").replace("domains.", "").replace("api.v1.", "api.")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get() or "-"
        return True


class CatalogFormatter(logging.Formatter):
    """
    time | LVL | logger | [rid] | message

    Consola: só hora e cores opcionais. Ficheiro: data completa, sem cores.
    """

    def __init__(self, *, use_colors: bool = False, with_date: bool = False):
        super().__init__()
        self.use_colors = use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        self.time_fmt = "%Y-%m-%d %H:%M:%S" if with_date else "%H:%M:%S"

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime(self.time_fmt)
        stamp += f".{int(record.msecs):03d}"
        color, level = LEVEL_STYLES.get(record.levelno, ("", record.levelname[:3]))
        name = f"{_short_name(record.name):<25}"
        rid = f"[{getattr(record, 'request_id', '-')}]"

        if self.use_colors:
            stamp = f"{_DIM}{stamp}{_RESET}"
            level = f"{color}{level}{_RESET}"
            name = f"{_NAME}{name}{_RESET}"
            rid = f"{_DIM}{rid}{_RESET}"

        out = " | ".join((stamp, level, name, rid, record.getMessage()))
        if record.exc_info:
            out += "\n" + self.formatException(record.exc_info)
        return out


# -------- request-id ----------
def get_request_id_or(default: str = "-") -> str:
    return _request_id_ctx.get() or default


def set_request_id(rid: str | None) -> None:
    _request_id_ctx.set(rid)


# -------- timing ----------
@contextmanager
def log_timing(operation: str, logger: logging.Logger | str | None = None, **context):
    """
    Regista a duração de um bloco (debug) ou a falha (error, e re-levanta).

        with log_timing("catalog.list_products", log, page=2):
            ...
    """
    if isinstance(logger, str):
        logger = logging.getLogger(logger)
    elif logger is None:
        logger = logging.getLogger("catalog.timing")

    suffix = ""
    if context:
        suffix = " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"

    t0 = time.perf_counter()
    try:
        yield
    except Exception as e:
        ms = (time.perf_counter() - t0) * 1000
        logger.error("%s FAILED in %.1fms: %s%s", operation, ms, e, suffix)
        raise
    ms = (time.perf_counter() - t0) * 1000
    logger.debug("%s done in %.1fms%s", operation, ms, suffix)


def setup_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_dir = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))
    base_name = os.getenv("LOG_BASENAME", "catalog")
    retention_days = int(os.getenv("LOG_RETENTION_DAYS", "30"))
    use_colors = os.getenv("LOG_COLORS", "true").lower() in ("true", "1", "yes")

    os.makedirs(log_dir, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(CatalogFormatter(use_colors=use_colors))

    # backupCount faz a limpeza dos ficheiros antigos
    fileh = TimedRotatingFileHandler(
        filename=os.path.join(log_dir, f"{base_name}.log"),
        when="midnight",
        backupCount=retention_days,
        encoding="utf-8",
        delay=True,
    )
    fileh.suffix = "%Y-%m-%d"
    fileh.setFormatter(CatalogFormatter(with_date=True))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in (console, fileh):
        handler.addFilter(RequestIdFilter())
        root.addHandler(handler)

    for name, env in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(os.getenv(env, "WARNING").upper())

    logging.getLogger("catalog.logging").debug(
        "Logging initialized: level=%s, colors=%s, dir=%s", level, use_colors, log_dir
    )
