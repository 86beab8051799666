import logging
from typing import Union

from pythonjsonlogger import jsonlogger


def setup_logger(level: Union[str, int] = logging.INFO) -> None:
    logger = logging.getLogger()
    if any(getattr(handler, '_whop_oauth2', False) for handler in logger.handlers):
        logger.setLevel(level)
        return
    logHandler = logging.StreamHandler()
    logHandler._whop_oauth2 = True
    formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                                         rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
    logHandler.setFormatter(formatter)
    logger.addHandler(logHandler)
    logger.setLevel(level)
