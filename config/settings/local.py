# config/settings/local.py
from .base import *  # noqa

DEBUG = True

LOGGING["loggers"]["fo_core"]["level"] = "DEBUG"  # noqa: F405
