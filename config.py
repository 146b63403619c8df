"""
config.py
---------
Loads service configuration from the environment (and a local .env file).
"""

import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "mongodb://localhost:27017"
DEFAULT_DATABASE_NAME = "dental_clinic"
DEFAULT_PORT = 3000


def load_config():
    """
    Load environment variables from .env and return a configuration dictionary.

    TOKEN_SECRET has no default; it is validated when the token service is built.
    """
    load_dotenv()

    config = {}
    config["DATABASE_URL"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    config["DATABASE_NAME"] = os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)
    config["TOKEN_SECRET"] = os.getenv("TOKEN_SECRET", "")
    config["PORT"] = int(os.getenv("PORT", DEFAULT_PORT))

    # Never log the connection string or the secret
    logger.info("Loaded configuration:")
    logger.info(f"Database Name: {config['DATABASE_NAME']}")
    logger.info(f"Token Secret: {'set' if config['TOKEN_SECRET'] else 'NOT SET'}")
    logger.info(f"Port: {config['PORT']}")

    return config
