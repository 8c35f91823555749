"""Package logger. Applications attach their own handlers."""

import logging

logger = logging.getLogger("tyrell")
logger.addHandler(logging.NullHandler())
