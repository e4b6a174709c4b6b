"""
Generation parameters and configuration loading.
"""

import numbers
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ParameterError


GROWTH_FAILURE_POLICIES = ('skip', 'raise')

# Numeric parameters; max_radius may also be None
NUMERIC_FIELDS = ('min_separation', 'min_radius', 'radius_step', 'target_coverage', 'max_radius')

DEFAULT_CONFIG = {
    'min_separation': 0.0,        # dmin: 0 disables the separation check
    'min_radius': 0.01,           # rmin: starting radius of every growth search
    'radius_step': 0.001,         # rstep: radius increment per search iteration
    'target_coverage': 1.0,       # pmax: fraction of vertices producing spheres
    'seed': None,
    'output': None,
    'visualize': False,
    'center_on_centroid': False,
    'max_radius': None,           # None: bounding box diagonal of the mesh
    'on_growth_failure': 'skip',
    'show_progress': False,
}


@dataclass(frozen=True)
class GenerationParameters:
    """Immutable configuration of one generation run."""
    min_separation: float = 0.0
    min_radius: float = 0.01
    radius_step: float = 0.001
    target_coverage: float = 1.0
    seed: Optional[int] = None
    output: Optional[str] = None
    visualize: bool = False
    center_on_centroid: bool = False
    max_radius: Optional[float] = None
    on_growth_failure: str = 'skip'
    show_progress: bool = False

    def validate(self) -> 'GenerationParameters':
        """Raise ParameterError if any value is out of range."""
        for name in NUMERIC_FIELDS:
            value = getattr(self, name)
            if value is None and name == 'max_radius':
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ParameterError(f'{name} must be a number, got {value!r}')
        if not self.radius_step > 0:
            raise ParameterError(f'radius_step must be > 0, got {self.radius_step}')
        if not 0 < self.target_coverage <= 1:
            raise ParameterError(
                f'target_coverage must be in (0, 1], got {self.target_coverage}')
        if not self.min_radius > 0:
            raise ParameterError(f'min_radius must be > 0, got {self.min_radius}')
        if not self.min_separation >= 0:
            raise ParameterError(
                f'min_separation must be >= 0, got {self.min_separation}')
        if self.max_radius is not None and not self.max_radius > self.min_radius:
            raise ParameterError(
                f'max_radius must exceed min_radius, got {self.max_radius}')
        if self.on_growth_failure not in GROWTH_FAILURE_POLICIES:
            raise ParameterError(
                f'on_growth_failure must be one of {GROWTH_FAILURE_POLICIES}, '
                f'got {self.on_growth_failure!r}')
        if self.seed is not None and not isinstance(self.seed, numbers.Integral):
            raise ParameterError(f'seed must be an integer, got {self.seed!r}')
        return self

    @property
    def tolerance(self) -> float:
        """Potential tolerance used during growth."""
        return self.min_radius / 1000.0

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'GenerationParameters':
        """
        Build parameters from a config dict merged over DEFAULT_CONFIG.

        Args:
            config: Partial configuration. Unknown keys raise ParameterError.

        Returns:
            Validated GenerationParameters
        """
        merged = {**DEFAULT_CONFIG}
        if config:
            unknown = set(config) - {f.name for f in fields(cls)}
            if unknown:
                raise ParameterError(f'Unknown configuration keys: {sorted(unknown)}')
            merged.update(config)
        for name in NUMERIC_FIELDS:
            value = merged[name]
            if value is None or isinstance(value, (bool, numbers.Real)):
                continue
            # PyYAML reads exponent notation without a dot (1e-3) as a string
            try:
                merged[name] = float(value)
            except (TypeError, ValueError):
                raise ParameterError(f'{name} must be a number, got {value!r}') from None
        return cls(**merged).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a configuration dict from a YAML file."""
    with open(path, 'r') as infile:
        config = yaml.safe_load(infile)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ParameterError(f'Configuration file {path} must contain a mapping')
    return config
