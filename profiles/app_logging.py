"""Configures log output for the profile service."""

import logging

from pythonjsonlogger import jsonlogger

FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(level: int = logging.INFO, json: bool = True) -> None:
    """
    Attach a stream handler to the root logger.

    With ``json``, each record is written as a JSON object with the keys
    ``timestamp``, ``level``, ``name`` and ``message``.
    """
    logger = logging.getLogger()
    logger.setLevel(level)
    if any(getattr(h, '_profiles', False) for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    if json:
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            FORMAT,
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(FORMAT)
    handler.setFormatter(formatter)
    handler._profiles = True    # type: ignore
    logger.addHandler(handler)
