"""Analysis configuration loader.

Loads and provides access to centralized table parameters from config.yaml.
Ensures reproducibility by centralizing significance thresholds, precision
and cell sentinels.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import yaml

__all__ = ["AnalysisConfig", "config"]


class AnalysisConfig:
    """Analysis configuration singleton."""

    _instance: AnalysisConfig | None = None
    _config: dict[str, Any] | None = None

    def __new__(cls) -> AnalysisConfig:
        """Singleton pattern to ensure config is loaded once."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Load configuration from YAML file."""
        if self._config is None:
            config_path = Path(__file__).parent / "config.yaml"
            with open(config_path, encoding="utf-8") as f:
                self._config = yaml.safe_load(f)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get configuration value by nested keys.

        Args:
            *keys: Nested keys to traverse (e.g., "tables", "precision", "default")
            default: Default value if key path not found

        Returns:
            Configuration value or default

        Examples:
            >>> config = AnalysisConfig()
            >>> config.get("tables", "sentinels", "diagonal")
            '-'
            >>> config.get("statistical", "min_samples", "correlation")
            3

        """
        value = self._config
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    @property
    def significance_levels(self) -> list[tuple[float, str]]:
        """Star thresholds as (threshold, stars), strictest first."""
        levels = self.get("statistical", "significance", default=None)
        if not levels:
            return [(0.001, "***"), (0.01, "**"), (0.05, "*")]
        pairs = [(float(level["threshold"]), str(level["stars"])) for level in levels]
        return sorted(pairs, key=lambda pair: pair[0])

    @property
    def alpha(self) -> float:
        """Loosest significance threshold (one star)."""
        return self.significance_levels[-1][0]

    @property
    def min_sample_correlation(self) -> int:
        """Minimum pairwise sample size for a correlation p-value."""
        return cast(int, self.get("statistical", "min_samples", "correlation", default=3))

    @property
    def min_sample_group(self) -> int:
        """Minimum observations per group for t-tests, ANOVA and strata."""
        return cast(int, self.get("statistical", "min_samples", "group", default=2))

    @property
    def precision_default(self) -> int:
        """Default number of decimal places in table cells."""
        return cast(int, self.get("tables", "precision", "default", default=2))

    @property
    def diagonal_sentinel(self) -> str:
        """Marker for self-pairs on the diagonal."""
        return cast(str, self.get("tables", "sentinels", "diagonal", default="-"))

    @property
    def not_available(self) -> str:
        """Marker for statistics that could not be computed."""
        return cast(str, self.get("tables", "sentinels", "not_available", default="NA"))

    @property
    def blank(self) -> str:
        """Marker for cells removed by triangle selection."""
        return cast(str, self.get("tables", "sentinels", "blank", default=""))

    @property
    def label_t(self) -> str:
        """Prefix for two-sample t statistics."""
        return cast(str, self.get("tables", "labels", "t", default="t="))

    @property
    def label_f(self) -> str:
        """Prefix for ANOVA F statistics."""
        return cast(str, self.get("tables", "labels", "f", default="F="))

    @property
    def label_chi_square(self) -> str:
        """Prefix for chi-square statistics."""
        return cast(str, self.get("tables", "labels", "chi_square", default="χ2="))

    @property
    def default_method(self) -> str:
        """Default correlation method."""
        return cast(str, self.get("correlation", "defaults", "method", default="pearson"))

    @property
    def default_use(self) -> str:
        """Default missing-data policy."""
        return cast(str, self.get("correlation", "defaults", "use", default="pairwise"))

    @property
    def default_tri(self) -> str:
        """Default triangle-keep policy."""
        return cast(str, self.get("correlation", "defaults", "tri", default="upper"))

    @property
    def pipeline_version(self) -> str:
        """Analysis pipeline version."""
        return cast(str, self.get("reproducibility", "pipeline_version", default="1.0.0"))

    @property
    def config_version(self) -> str:
        """Configuration file version."""
        return cast(str, self.get("reproducibility", "config_version", default="1.0.0"))


# Global singleton instance
config = AnalysisConfig()

# Convenient module-level constants
ALPHA = config.alpha
SIGNIFICANCE_LEVELS = config.significance_levels
MIN_SAMPLE_CORRELATION = config.min_sample_correlation
MIN_SAMPLE_GROUP = config.min_sample_group
DIAGONAL = config.diagonal_sentinel
NOT_AVAILABLE = config.not_available
BLANK = config.blank
