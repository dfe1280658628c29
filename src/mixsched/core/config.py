# src/mixsched/core/config.py

import logging
import os

from dotenv import load_dotenv

from ..models.policy import DEFAULT_EXCLUDED_NAMESPACES, WebhookSettings

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

TRUE_VALUES = ("true", "1", "t", "y", "yes")


class Config:
    """
    Handles the application's configuration by loading values from environment variables.
    """

    # --- Listener variables ---
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    TLS_CERT_FILE = os.getenv("TLS_CERT_FILE", "/run/secrets/tls/tls.crt")
    TLS_KEY_FILE = os.getenv("TLS_KEY_FILE", "/run/secrets/tls/tls.key")

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Telemetry variables ---
    OTEL_ENABLED = os.getenv("OTEL_ENABLED", "False").lower() in TRUE_VALUES

    # Policy and cache values are properties so they are resolved at access
    # time; tests and the CLI can change the environment after import.
    @property
    def PORT(self) -> int:
        return self._get_int("PORT", 8443)

    @property
    def MIX_SCHEDULER_ENABLED(self) -> bool:
        return os.getenv("MIX_SCHEDULER_ENABLED", "true").strip().lower() in TRUE_VALUES

    @property
    def EXCLUDED_NAMESPACES(self) -> frozenset:
        raw = os.getenv("EXCLUDED_NAMESPACES", "")
        if not raw.strip():
            return DEFAULT_EXCLUDED_NAMESPACES
        return frozenset(ns.strip() for ns in raw.split(",") if ns.strip())

    @property
    def SPOT_NODE_WEIGHT(self) -> int:
        return self._get_int("SPOT_NODE_WEIGHT", 10)

    @property
    def ONDEMAND_NODE_WEIGHT(self) -> int:
        return self._get_int("ONDEMAND_NODE_WEIGHT", 1)

    @property
    def ONDEMAND_MIN_POD_NUM(self) -> int:
        return self._get_int("ONDEMAND_MIN_POD_NUM", 1)

    @property
    def SPOT_MIN_POD_NUM(self) -> int:
        return self._get_int("SPOT_MIN_POD_NUM", 1)

    # --- Cluster cache variables ---
    @property
    def CACHE_WATCH_TIMEOUT_SECONDS(self) -> int:
        return self._get_int("CACHE_WATCH_TIMEOUT_SECONDS", 300)

    @property
    def CACHE_RETRY_BACKOFF_SECONDS(self) -> float:
        value = os.getenv("CACHE_RETRY_BACKOFF_SECONDS", "5")
        try:
            return float(value)
        except ValueError as e:
            raise ValueError(f"CACHE_RETRY_BACKOFF_SECONDS must be a number, got '{value}'") from e

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """
        Reads an integer environment variable.

        Raises:
            ValueError: If the variable is set but is not an integer.
        """
        value = os.getenv(key)
        if value is None or value.strip() == "":
            return default
        try:
            return int(value.strip())
        except ValueError as e:
            raise ValueError(f"{key} must be an integer, got '{value}'") from e

    def build_settings(self) -> WebhookSettings:
        """Builds the immutable settings value handed to the admission engine."""
        return WebhookSettings(
            enabled=self.MIX_SCHEDULER_ENABLED,
            excluded_namespaces=self.EXCLUDED_NAMESPACES,
            spot_weight=self.SPOT_NODE_WEIGHT,
            on_demand_weight=self.ONDEMAND_NODE_WEIGHT,
            on_demand_floor=self.ONDEMAND_MIN_POD_NUM,
            spot_floor=self.SPOT_MIN_POD_NUM,
        )

    def validate_instance(self):
        if not 0 < self.PORT < 65536:
            raise ValueError("PORT must be between 1 and 65535")
        for key in ("SPOT_NODE_WEIGHT", "ONDEMAND_NODE_WEIGHT", "ONDEMAND_MIN_POD_NUM", "SPOT_MIN_POD_NUM"):
            if getattr(self, key) < 0:
                raise ValueError(f"{key} must be >= 0")
        if self.CACHE_WATCH_TIMEOUT_SECONDS <= 0:
            raise ValueError("CACHE_WATCH_TIMEOUT_SECONDS must be > 0")
        if self.CACHE_RETRY_BACKOFF_SECONDS < 0:
            raise ValueError("CACHE_RETRY_BACKOFF_SECONDS must be >= 0")
        # Raises pydantic's ValidationError (a ValueError) for out-of-range weights.
        self.build_settings()
        if not self.MIX_SCHEDULER_ENABLED:
            logging.getLogger(__name__).warning(
                "MIX_SCHEDULER_ENABLED is off; only workloads labelled to opt in will be mutated."
            )


# Instantiate the config to be imported by other modules
config = Config()
