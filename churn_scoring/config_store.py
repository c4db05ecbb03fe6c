"""
Churn Scoring Engine - Configuration Store.

============================================================
PURPOSE
============================================================
Owns the single active ScoringConfig of the process.

- current() hands out an immutable ScoringConfig
- save() validates, persists, then swaps the reference
- Readers never see a mix of old and new weights

Persistence goes through a ConfigBackend. The JSON file
backend writes atomically (temp file + os.replace).

============================================================
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from core.exceptions import ConfigurationError, RetentionException

from .config import ScoreWeightsConfig, ScoringConfig


logger = logging.getLogger(__name__)


# ============================================================
# BACKENDS
# ============================================================


class ConfigBackend(Protocol):
    """Where the scoring configuration lives between restarts."""

    def load(self) -> Optional[ScoringConfig]:
        ...

    def save(self, config: ScoringConfig) -> None:
        ...


class InMemoryConfigBackend:
    """Keeps the last saved config in memory. For tests and dev."""

    def __init__(self, initial: Optional[ScoringConfig] = None):
        self._config = initial
        self.save_count = 0

    def load(self) -> Optional[ScoringConfig]:
        return self._config

    def save(self, config: ScoringConfig) -> None:
        self._config = config
        self.save_count += 1


class JsonFileConfigBackend:
    """
    Scoring config persisted as a JSON document.

    Missing file loads as None (defaults). An unreadable or
    invalid file logs a warning and also loads as None.
    Missing keys are filled from defaults.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[ScoringConfig]:
        if not self._path.exists():
            logger.info(f"No scoring config at {self._path}, using defaults")
            return None

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read scoring config {self._path}: {e}; using defaults")
            return None

        if not isinstance(data, Mapping):
            logger.warning(f"Scoring config {self._path} is not a JSON object; using defaults")
            return None

        try:
            return ScoringConfig.from_mapping(data, fill_defaults=True)
        except RetentionException as e:
            logger.warning(f"Invalid scoring config {self._path}: {e.message}; using defaults")
            return None

    def save(self, config: ScoringConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


# ============================================================
# STORE
# ============================================================


class ScoringConfigStore:
    """Single owner of the active scoring configuration."""

    def __init__(self, backend: Optional[ConfigBackend] = None):
        self._backend = backend or InMemoryConfigBackend()
        self._lock = threading.Lock()
        self._current = self._backend.load() or ScoringConfig()
        logger.info(f"Scoring config loaded: {self._current.to_dict()}")

    def current(self) -> ScoringConfig:
        """One reference for one render pass."""
        return self._current

    @property
    def weights(self) -> ScoreWeightsConfig:
        return self._current.weights

    def save(self, config: Union[ScoringConfig, Mapping[str, Any]]) -> ScoringConfig:
        """
        Validate, persist and publish a new config.

        Raises:
            InvalidConfigError: proposal rejected, active config unchanged
            ConfigurationError: backend could not persist it
        """
        if not isinstance(config, ScoringConfig):
            config = ScoringConfig.from_mapping(config)

        with self._lock:
            try:
                self._backend.save(config)
            except OSError as e:
                logger.error(f"Failed to persist scoring config: {e}")
                raise ConfigurationError(
                    f"Could not persist scoring config: {e}",
                    cause=e,
                ) from e
            self._current = config

        logger.info(f"Scoring config updated: {config.to_dict()}")
        return config

    def update_weights(self, changes: Mapping[str, Any]) -> ScoringConfig:
        """Change some weights, keep the rest."""
        current = self._current
        merged: Dict[str, Any] = current.weights.to_dict()
        merged.update(changes)
        weights = ScoreWeightsConfig.from_mapping(merged)
        return self.save(ScoringConfig(weights=weights, thresholds=current.thresholds))

    def reset_to_defaults(self) -> ScoringConfig:
        logger.info("Resetting scoring config to defaults")
        return self.save(ScoringConfig())
