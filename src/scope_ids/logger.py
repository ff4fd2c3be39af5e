# scope_ids/logger.py
import logging
import sys
from typing import Optional

from .settings import Settings, get_settings


def init_logger(settings: Optional[Settings] = None) -> logging.Logger:
	"""
	Idempotent logger init:
	- Always logs to stdout.
	- Respects settings.log_level.
	- Keeps the AWS SDK quiet unless something goes wrong.
	"""
	settings = settings or get_settings()
	root = logging.getLogger()
	if getattr(root, "_scope_ids_inited", False):
		return logging.getLogger(settings.logger_name)

	level = getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO)
	root.setLevel(level)

	# Clear any default handlers to avoid duplicates
	for h in list(root.handlers):
		root.removeHandler(h)

	ch = logging.StreamHandler(sys.stdout)
	ch.setLevel(level)
	ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s", datefmt="%Y-%m-%dT%H:%M:%S%z"))
	root.addHandler(ch)

	for noisy in ("botocore", "boto3", "urllib3"):
		logging.getLogger(noisy).setLevel(logging.WARNING)

	root._scope_ids_inited = True  # type: ignore[attr-defined]
	logger = logging.getLogger(settings.logger_name)
	logger.debug("Logger initialized")
	return logger
