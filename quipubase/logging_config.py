"""Logging setup for applications embedding the Quipubase client.

The client only creates module loggers under ``quipubase``; nothing is
configured on import. log_init() applies a JSON dictConfig file. The bundled
``logging.json`` sends everything to stderr, keeps ``quipubase`` at INFO
(subscription open/close, dropped events, stream errors) and quiets the
per-request chatter of ``httpx`` and ``httpcore`` to WARNING.
"""

import json
import logging
import logging.config
import os

_BUNDLED_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logging.json")


def log_init(log_config_path: str | None = None, level: int | str | None = None) -> None:
    """Configure logging from a JSON file, optionally overriding the client's level.

    The file is the first of: ``log_config_path``, the LOG_CONFIG
    environment variable, the bundled config. ``level`` (e.g. ``"DEBUG"`` to
    see every request line) is applied to the ``quipubase`` logger after the
    file is loaded.
    """
    path = log_config_path or os.environ.get("LOG_CONFIG", _BUNDLED_CONFIG)
    with open(path) as f:
        config = json.load(f)
    logging.config.dictConfig(config)
    if level is not None:
        logging.getLogger("quipubase").setLevel(level)
