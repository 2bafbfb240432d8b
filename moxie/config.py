"""Configuration for moxie.

MoxieConfig can be constructed programmatically or loaded from environment
variables with from_env(). Whether a run is a test build is decided outside
moxie (the pytest plugin sets MOXIE_TEST_BUILD); moxie only reads the fact.

Environment Variables:
    MOXIE_TEST_BUILD: Install the mock control surface (default: off)
    MOXIE_STRICT: Fail generation on ambiguous method names (default: off)
    MOXIE_LOG_LEVEL: Log level used by the CLI (default: WARNING)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

TEST_BUILD_ENV = "MOXIE_TEST_BUILD"
STRICT_ENV = "MOXIE_STRICT"
LOG_LEVEL_ENV = "MOXIE_LOG_LEVEL"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        message = "Configuration validation failed:\n" + "\n".join(
            f"  - {e}" for e in errors
        )
        super().__init__(message)


@dataclass(frozen=True)
class MoxieConfig:
    """Settings shared by the generator and the CLI.

    Attributes:
        test_build: Proxies carry stub/do/return/calls controls.
            Env: MOXIE_TEST_BUILD (default: off)
        strict: Ambiguous method names raise AmbiguousCompositionError
            instead of being dropped.
            Env: MOXIE_STRICT (default: off)
        log_level: Level name for CLI logging.
            Env: MOXIE_LOG_LEVEL (default: WARNING)

    Example:
        config = MoxieConfig(test_build=True)
        config = MoxieConfig.from_env()
    """

    test_build: bool = False
    strict: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MoxieConfig":
        """Load configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Raises:
            ConfigurationError: If any variable has an invalid value
        """
        env = os.environ if environ is None else environ
        errors: list[str] = []

        def flag(name: str) -> bool:
            raw = env.get(name, "").strip().lower()
            if raw in _TRUE:
                return True
            if raw not in _FALSE:
                errors.append(f"{name} must be a boolean, got {env[name]!r}")
            return False

        test_build = flag(TEST_BUILD_ENV)
        strict = flag(STRICT_ENV)

        log_level = env.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
        if log_level not in _LOG_LEVELS:
            errors.append(
                f"{LOG_LEVEL_ENV} must be one of {', '.join(_LOG_LEVELS)}, "
                f"got {env[LOG_LEVEL_ENV]!r}"
            )
            log_level = "WARNING"

        if errors:
            raise ConfigurationError(errors)

        return cls(test_build=test_build, strict=strict, log_level=log_level)
