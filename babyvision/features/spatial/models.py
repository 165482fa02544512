from dataclasses import dataclass
from enum import Enum


class KernelMode(Enum):
    # Gaussian with sigma at the cutoff's half-power point
    GAUSSIAN = "gaussian"
    # Gaussian envelope shaped by the contrast sensitivity curve
    CSF = "csf"


@dataclass(frozen=True)
class SpatialConfig:
    """
    Spatial frequency stage parameters that are not part of the age preset.
    """

    kernel_mode: KernelMode = KernelMode.GAUSSIAN
    contrast_compression: bool = True
