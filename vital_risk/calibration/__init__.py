"""Blood-pressure calibration applied to raw device readings."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..data import VitalSigns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationOffsets:
    """Systematic sensor bias in mmHg, subtracted from raw readings.

    The defaults compensate for the device reading high against a reference
    blood-pressure monitor.
    """

    systolic_offset: float = 15.0
    diastolic_offset: float = 10.0

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "CalibrationOffsets":
        if not config:
            return cls()
        defaults = cls()
        return cls(
            systolic_offset=float(config.get("systolic_offset", defaults.systolic_offset)),
            diastolic_offset=float(config.get("diastolic_offset", defaults.diastolic_offset)),
        )


@dataclass(frozen=True)
class CalibratedVitalSigns(VitalSigns):
    """A reading with blood-pressure offsets already removed."""


class Calibrator:
    """Removes the sensor's blood-pressure bias before classification."""

    def __init__(self, offsets: Optional[CalibrationOffsets] = None):
        self.offsets = offsets or CalibrationOffsets()
        logger.debug(f"Calibrator using offsets {self.offsets}")

    def calibrate(self, vitals: VitalSigns) -> CalibratedVitalSigns:
        """Subtract the configured offsets; every other reading passes through.

        Args:
            vitals: Raw device reading.

        Returns:
            Calibrated reading.
        """
        return CalibratedVitalSigns(
            temperature=vitals.temperature,
            heart_rate=vitals.heart_rate,
            oxygen_saturation=vitals.oxygen_saturation,
            systolic=vitals.systolic - self.offsets.systolic_offset,
            diastolic=vitals.diastolic - self.offsets.diastolic_offset,
            signal_quality=vitals.signal_quality,
        )

    def __repr__(self) -> str:
        return (
            f"Calibrator(systolic_offset={self.offsets.systolic_offset}, "
            f"diastolic_offset={self.offsets.diastolic_offset})"
        )
