__version__ = "0.3.0"
BUILD_DATE = "2026-10-19"
