"""Application settings and validation."""

import os

_ENVIRONMENTS = ("dev", "test", "prod")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    ENV: str
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    LOAD_SEED_DATA: bool
    VALIDATE_CONCEPT_REFS: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = _flag("ALLOW_DEV_CORS", "true")
        self.LOAD_SEED_DATA = _flag("LOAD_SEED_DATA", "true")
        # conceptId is a loose reference unless this is switched on
        self.VALIDATE_CONCEPT_REFS = _flag("VALIDATE_CONCEPT_REFS", "false")
        self._validate()

    def _validate(self):
        if self.ENV not in _ENVIRONMENTS:
            raise RuntimeError(f"ENV must be one of {', '.join(_ENVIRONMENTS)}, got {self.ENV!r}")
        if self.LOG_LEVEL not in _LOG_LEVELS:
            raise RuntimeError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {self.LOG_LEVEL!r}")


settings = Settings()
