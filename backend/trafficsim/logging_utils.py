import logging
from pathlib import Path
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

from trafficsim.settings import settings


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _resolve_log_dir(configured: Optional[str]) -> Optional[Path]:
    if not configured:
        return None
    log_dir = Path(configured)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        probe = log_dir / ".writetest"
        probe.touch(exist_ok=True)
        probe.unlink(missing_ok=True)
    except OSError:
        return None
    return log_dir


def get_logger() -> logging.Logger:
    logger = logging.getLogger("trafficsim")

    # Reloaders import the app twice; configure handlers only once
    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(_parse_level(settings.log_level))
    logger.propagate = False

    formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    log_dir = _resolve_log_dir(settings.log_dir)
    if log_dir is not None:
        try:
            fh = logging.FileHandler(log_dir / "trafficsim.log.jsonl", encoding="utf-8")
            fh.setFormatter(formatter)
            logger.addHandler(fh)
        except OSError:
            logger.warning("file logging unavailable", extra={"log_dir": str(log_dir)})

    logger._configured = True  # type: ignore[attr-defined]
    return logger


LOGGER: Optional[logging.Logger] = None


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    global LOGGER
    if LOGGER is None:
        LOGGER = get_logger()
    LOGGER.log(level, event, extra={"event": event, **fields})
