import sys

import uvicorn
from loguru import logger

from jurisdiction_finder.api import app
from jurisdiction_finder.config import HOST, PORT, LOG_LEVEL

if __name__ == "__main__":
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>")
    uvicorn.run(app, host=HOST, port=PORT)
