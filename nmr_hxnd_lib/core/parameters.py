"""
Parameter Management Module
===========================

Manages processing parameters with:
1. Dataclass-based parameter storage
2. JSON serialization for save/load
3. Parameter validation
4. Default reconstruction presets
"""

import json
from dataclasses import dataclass, asdict, fields
from typing import Optional, Dict, Any, List
from pathlib import Path
from enum import Enum


class WindowType(Enum):
    """Window function types"""
    UNDEFINED = "undefined"
    SINE = "sine"
    EXP = "exp"
    GAUSS = "gauss"
    TRAP = "trap"
    TRI = "tri"
    BLACKMAN = "black"


RECONSTRUCTION_METHODS = ("ist", "ffm", "irls")
ENTROPY_NAMES = ("norm", "shannon", "skilling", "hoch")


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class ReconstructionParameters:
    """
    Nonuniform sampling reconstruction parameters.

    ``workers`` is the thread count used for vector slices (None lets the
    executor choose).
    """
    method: str = "ist"                # "ist", "ffm" or "irls"
    niter: int = 100                   # Iteration count
    thresh: float = 0.98               # IST threshold decay factor
    entropy: str = "norm"              # FFM entropy functional
    pa: float = 1.0                    # IRLS starting norm order
    pb: float = 1.0                    # IRLS ending norm order
    workers: Optional[int] = None      # Slice thread count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReconstructionParameters':
        """Create from dictionary"""
        return cls(**_known_fields(cls, data))

    def validate(self) -> List[str]:
        """
        Validate parameters and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.method not in RECONSTRUCTION_METHODS:
            errors.append(f"Reconstruction method must be one of {list(RECONSTRUCTION_METHODS)}")
        if self.niter < 1:
            errors.append("Iteration count must be >= 1")
        if self.thresh <= 0.0 or self.thresh >= 1.0:
            errors.append("Threshold factor must be in (0, 1)")
        if self.entropy not in ENTROPY_NAMES:
            errors.append(f"Entropy functional must be one of {list(ENTROPY_NAMES)}")
        if not 0.0 <= self.pa <= 1.0 or not 0.0 <= self.pb <= 1.0:
            errors.append("Norm orders must be in [0, 1]")
        elif self.pa < self.pb:
            errors.append("Norm orders must decrease during iteration")
        if self.workers is not None and self.workers < 1:
            errors.append("Worker count must be >= 1")

        return errors

    def copy(self) -> 'ReconstructionParameters':
        """Create a deep copy"""
        return ReconstructionParameters(**self.to_dict())


@dataclass
class WindowParameters:
    """
    Window function parameters.

    Only the fields used by ``window_type`` matter:
    sine (start, end, order), exp (lb, width), gauss (invlb, lb, center,
    width), trap (start, end), tri (center, start, end), blackman (none).
    """
    window_type: WindowType = WindowType.SINE
    start: float = 0.0                 # Start fraction / start value
    end: float = 1.0                   # End fraction / end value
    order: float = 1.0                 # Sine power
    lb: float = 0.0                    # Line broadening (Hz)
    invlb: float = 0.0                 # Inverse line broadening (Hz)
    center: float = 0.5                # Center fraction in [0, 1]
    width: float = 1.0                 # Spectral width (Hz)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        data['window_type'] = self.window_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WindowParameters':
        """Create from dictionary"""
        data = _known_fields(cls, data)
        if 'window_type' in data and not isinstance(data['window_type'], WindowType):
            data['window_type'] = WindowType(data['window_type'])

        return cls(**data)

    def validate(self) -> List[str]:
        """
        Validate parameters and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        wt = self.window_type

        if wt == WindowType.UNDEFINED:
            errors.append("Window type is undefined")

        if wt == WindowType.SINE:
            if not 0.0 <= self.start <= 1.0 or not 0.0 <= self.end <= 1.0:
                errors.append("Sine window start and end must be in [0, 1]")
            if self.order < 1.0:
                errors.append("Sine window order must be >= 1")

        if wt in (WindowType.EXP, WindowType.GAUSS) and self.width <= 0.0:
            errors.append("Spectral width must be > 0")

        if wt in (WindowType.GAUSS, WindowType.TRI) and not 0.0 <= self.center <= 1.0:
            errors.append("Window center must be in [0, 1]")

        if wt == WindowType.TRAP:
            if not 0.0 <= self.start <= self.end <= 1.0:
                errors.append("Trapezoid corners must satisfy 0 <= start <= end <= 1")

        return errors

    def copy(self) -> 'WindowParameters':
        """Create a deep copy"""
        return WindowParameters.from_dict(self.to_dict())


@dataclass
class FilterParameters:
    """FIR filter parameters"""
    order: int = 32                    # Filter order M (M + 1 taps)
    cutoff: float = 0.25               # Normalized transition frequency
    band_stop: bool = False            # Invert into a band-stop filter

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FilterParameters':
        """Create from dictionary"""
        return cls(**_known_fields(cls, data))

    def validate(self) -> List[str]:
        """
        Validate parameters and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.order < 1:
            errors.append("Filter order must be >= 1")
        if self.band_stop and self.order % 2:
            errors.append("Band-stop filter order must be even")
        if self.cutoff < 0.0 or self.cutoff > 0.5:
            errors.append("Transition frequency must be in [0, 0.5]")

        return errors

    def copy(self) -> 'FilterParameters':
        """Create a deep copy"""
        return FilterParameters(**self.to_dict())


@dataclass
class BaselineParameters:
    """Whittaker baseline correction parameters"""
    smoothness: float = 1.0            # Whittaker lambda
    use_weights: bool = True           # Exclude peaks from the fit

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaselineParameters':
        """Create from dictionary"""
        return cls(**_known_fields(cls, data))

    def validate(self) -> List[str]:
        """Validate parameters and return list of errors"""
        errors = []

        if self.smoothness <= 0.0:
            errors.append("Baseline smoothness must be > 0")

        return errors

    def copy(self) -> 'BaselineParameters':
        """Create a deep copy"""
        return BaselineParameters(**self.to_dict())


class ParameterManager:
    """
    Manages parameter save/load with presets.
    """

    DEFAULT_PRESETS = {
        "fast_ist": ReconstructionParameters(
            method="ist",
            niter=50,
            thresh=0.9
        ),
        "accurate_ist": ReconstructionParameters(
            method="ist",
            niter=400,
            thresh=0.99
        ),
        "ffm_shannon": ReconstructionParameters(
            method="ffm",
            niter=100,
            entropy="shannon"
        )
    }

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize parameter manager.

        Args:
            config_dir: Directory to store saved parameters (default: current dir)
        """
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        self.config_dir.mkdir(parents=True, exist_ok=True)

        # Current parameters
        self.reconstruction = ReconstructionParameters()
        self.window = WindowParameters()
        self.filter = FilterParameters()
        self.baseline = BaselineParameters()

    def _path(self, filepath: str) -> Path:
        path = Path(filepath)
        return path if path.is_absolute() else self.config_dir / path

    def save_reconstruction_params(self, filepath: str, params: Optional[ReconstructionParameters] = None):
        """
        Save reconstruction parameters to JSON file.

        Args:
            filepath: Output file path (relative paths land in config_dir)
            params: Parameters to save (uses current if None)
        """
        params = params or self.reconstruction

        with open(self._path(filepath), 'w') as f:
            json.dump(params.to_dict(), f, indent=2)

    def load_reconstruction_params(self, filepath: str) -> ReconstructionParameters:
        """
        Load reconstruction parameters from JSON file.

        Args:
            filepath: Input file path

        Returns:
            Loaded parameters
        """
        with open(self._path(filepath), 'r') as f:
            data = json.load(f)

        params = ReconstructionParameters.from_dict(data)
        self.reconstruction = params
        return params

    def save_all(self, filepath: str):
        """
        Save every parameter group.

        Args:
            filepath: Output file path
        """
        data = {
            'reconstruction': self.reconstruction.to_dict(),
            'window': self.window.to_dict(),
            'filter': self.filter.to_dict(),
            'baseline': self.baseline.to_dict()
        }

        with open(self._path(filepath), 'w') as f:
            json.dump(data, f, indent=2)

    def load_all(self, filepath: str):
        """
        Load every parameter group present in the file.

        Args:
            filepath: Input file path
        """
        with open(self._path(filepath), 'r') as f:
            data = json.load(f)

        if 'reconstruction' in data:
            self.reconstruction = ReconstructionParameters.from_dict(data['reconstruction'])
        if 'window' in data:
            self.window = WindowParameters.from_dict(data['window'])
        if 'filter' in data:
            self.filter = FilterParameters.from_dict(data['filter'])
        if 'baseline' in data:
            self.baseline = BaselineParameters.from_dict(data['baseline'])

    def load_preset(self, preset_name: str) -> ReconstructionParameters:
        """
        Load a default reconstruction preset.

        Args:
            preset_name: Name of preset ('fast_ist', 'accurate_ist', 'ffm_shannon')

        Returns:
            Preset parameters
        """
        if preset_name not in self.DEFAULT_PRESETS:
            raise ValueError(f"Unknown preset: {preset_name}. "
                             f"Available: {list(self.DEFAULT_PRESETS.keys())}")

        params = self.DEFAULT_PRESETS[preset_name].copy()
        self.reconstruction = params
        return params

    def get_preset_names(self) -> List[str]:
        """Get list of available preset names"""
        return list(self.DEFAULT_PRESETS.keys())

    def validate_current(self) -> List[str]:
        """Validate every current parameter group"""
        return (self.reconstruction.validate() + self.window.validate() +
                self.filter.validate() + self.baseline.validate())
