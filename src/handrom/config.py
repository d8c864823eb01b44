"""Configuration classes for hand range-of-motion measurement.

Every tunable constant of the angle calculator, confidence aggregator,
temporal smoother and measurement session lives here as a named field.

Example:
    >>> from handrom.config import RomConfig, AngleConfig
    >>>
    >>> config = RomConfig(
    ...     angle=AngleConfig(max_flexion_angle=90.0, wrist_algorithm="planar"),
    ... )
    >>> config = RomConfig.from_yaml("rom.yaml")
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class AngleConfig:
    """Constants for the angle calculator.

    Attributes:
        reference_length: Segment length (normalized units) at which
            geometric confidence saturates at 1.0.
        min_acceptable: Minimum confidence for a sample to be valid.
        flexion_epsilon: Vertical offset below which flexion is 0.
        min_horizontal_distance: Floor for the horizontal leg of the
            flexion triangle.
        tip_deviation_epsilon: Fingertip offset that triggers the
            fingertip correction.
        palmar_tip_coefficient: Degrees added per unit of fingertip
            deviation for palmar flexion.
        dorsal_tip_coefficient: Same for dorsal flexion.
        max_flexion_angle: Optional upper bound on flexion angles.
            None leaves the range open.
        thumb_flexion_pivot: Raw MCP angle separating flexion from extension.
        thumb_abduction_pivot: Raw CMC angle separating abduction from adduction.
        degenerate_epsilon: Vector magnitude below which geometry is degenerate.
        wrist_algorithm: Registered wrist algorithm name.
    """

    reference_length: float = 0.1
    min_acceptable: float = 0.3
    flexion_epsilon: float = 0.01
    min_horizontal_distance: float = 0.01
    tip_deviation_epsilon: float = 0.02
    palmar_tip_coefficient: float = 30.0
    dorsal_tip_coefficient: float = 25.0
    max_flexion_angle: Optional[float] = None
    thumb_flexion_pivot: float = 90.0
    thumb_abduction_pivot: float = 30.0
    degenerate_epsilon: float = 1e-10
    wrist_algorithm: str = "directional"

    def __post_init__(self) -> None:
        if self.reference_length <= 0:
            raise ValueError(f"reference_length must be > 0, got {self.reference_length}")
        if not 0.0 <= self.min_acceptable <= 1.0:
            raise ValueError(f"min_acceptable must be in [0, 1], got {self.min_acceptable}")
        if self.max_flexion_angle is not None and self.max_flexion_angle < 0:
            raise ValueError(f"max_flexion_angle must be >= 0, got {self.max_flexion_angle}")


@dataclass
class SmoothingConfig:
    """Temporal smoother settings.

    Attributes:
        enabled: Whether the frame processor smooths its output.
        max_history: Moving-average window length per channel.
    """

    enabled: bool = True
    max_history: int = 5

    def __post_init__(self) -> None:
        if self.max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {self.max_history}")


@dataclass
class ConfidenceConfig:
    """Weights and tolerances for the blended confidence.

    Attributes:
        weight_angle: Weight of the average angle confidence.
        weight_detection: Weight of hand-detection stability.
        weight_position: Weight of positional stability.
        position_tolerance: Wrist displacement (normalized units) at which
            positional stability reaches 0.
        detection_window: Number of recent frames used for detection stability.
    """

    weight_angle: float = 0.6
    weight_detection: float = 0.2
    weight_position: float = 0.2
    position_tolerance: float = 0.05
    detection_window: int = 10

    def __post_init__(self) -> None:
        weights = (self.weight_angle, self.weight_detection, self.weight_position)
        if any(w < 0 for w in weights) or sum(weights) <= 0:
            raise ValueError(f"confidence weights must be >= 0 with a positive sum, got {weights}")
        if self.position_tolerance <= 0:
            raise ValueError(f"position_tolerance must be > 0, got {self.position_tolerance}")
        if self.detection_window < 1:
            raise ValueError(f"detection_window must be >= 1, got {self.detection_window}")

    @property
    def weights(self) -> Dict[str, float]:
        return {
            "angle": self.weight_angle,
            "detection": self.weight_detection,
            "position": self.weight_position,
        }


@dataclass
class SessionConfig:
    """Measurement session settings.

    Attributes:
        confidence_threshold: Minimum blended confidence for a sample to be
            accepted into the session summary.
    """

    confidence_threshold: float = 0.6


def _build(section_cls, data: Optional[Dict[str, Any]], section: str):
    data = dict(data or {})
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    for key in unknown:
        logger.warning("Ignoring unknown config key %s.%s", section, key)
        data.pop(key)
    return section_cls(**data)


@dataclass
class RomConfig:
    """Complete configuration for range-of-motion measurement.

    Attributes:
        angle: Angle calculator constants.
        smoothing: Temporal smoother settings.
        confidence: Confidence aggregation settings.
        session: Measurement session settings.

    Example:
        >>> config = RomConfig.from_dict({
        ...     "angle": {"max_flexion_angle": 90.0},
        ...     "smoothing": {"max_history": 7},
        ... })
    """

    angle: AngleConfig = field(default_factory=AngleConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RomConfig":
        """Create RomConfig from a dictionary (e.g., loaded from YAML).

        Unknown sections and keys are logged and ignored.

        Args:
            data: Dictionary with configuration data.

        Returns:
            RomConfig instance.

        Raises:
            ValueError: If a value is out of range.
        """
        data = dict(data or {})
        sections = {
            "angle": AngleConfig,
            "smoothing": SmoothingConfig,
            "confidence": ConfidenceConfig,
            "session": SessionConfig,
        }
        for key in sorted(set(data) - set(sections)):
            logger.warning("Ignoring unknown config section %s", key)

        return cls(**{
            name: _build(section_cls, data.get(name), name)
            for name, section_cls in sections.items()
        })

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "RomConfig":
        """Load RomConfig from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file.

        Returns:
            RomConfig instance.

        Raises:
            ImportError: If PyYAML is not installed.
            FileNotFoundError: If the file doesn't exist.
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for YAML config support. "
                "Install it with: pip install pyyaml"
            )

        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


default_config = RomConfig()
