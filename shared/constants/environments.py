from enum import Enum


class Environment(str, Enum):
    """Deployment environment, read from ``APP_ENVIRONMENT``."""

    PRODUCTION = "production"
    STAGING = "staging"
    TESTING = "testing"
    DEVELOPMENT = "development"

    @classmethod
    def parse(cls, value: str) -> "Environment":
        """Unknown names are treated as production."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.PRODUCTION

    @property
    def json_logs(self) -> bool:
        return self is not Environment.DEVELOPMENT
