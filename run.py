#!/usr/bin/env python3
"""Run script for profilehub."""

import logging

import uvicorn

from profilehub import config

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "profilehub.api.app:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG
    )
