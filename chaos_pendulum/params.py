"""
Simulation parameters, state and the configuration surface.

The control panel writes named numbers into a ControlSurface; the
simulation rebuilds an immutable SimulationParameters from it every frame.
"""

import dataclasses

import numpy as np
import yaml


@dataclasses.dataclass(frozen=True)
class SimulationParameters:
    # Dynamics
    rod1_length: float = 1.9
    rod2_length: float = 1.3
    rod1_mass: float = 5.0
    rod2_mass: float = 5.0
    gravity: float = 1.0
    rod1_momentum_boost: float = 1.0
    simulation_speed: float = 1.0

    # Placement fractions (0 = start of the rod, 1 = its end)
    pivot_position: float = -0.3
    rod2_attachment_position: float = 0.03
    rod2_pivot_position: float = -0.3

    # Frame geometry, locates the fixed base pivot
    base_height: float = 0.3
    support_height: float = 1.5
    rod_thickness: float = 0.04

    # Reset targets
    initial_theta1_deg: float = 5.73
    initial_theta2_deg: float = 90.0
    initial_omega1: float = 1.0

    @property
    def base_pivot(self):
        """World-space (x, y) of the fixed pivot at the apex of the frame."""
        return 0.0, self.base_height / 2 + self.support_height

    @classmethod
    def field_names(cls):
        return tuple(f.name for f in dataclasses.fields(cls))

    @classmethod
    def from_mapping(cls, values):
        """Build parameters from a name -> number mapping, ignoring extra keys."""
        names = set(cls.field_names())
        return cls(**{k: float(v) for k, v in values.items() if k in names})


@dataclasses.dataclass
class SimulationState:
    """
    Angular state of the two links.

    Angles are unbounded radians. The dynamics integrate theta2 as a
    generalized coordinate; the pose draws rod 2 at theta1 + theta2. See
    chaos_pendulum.dynamics for the convention.
    """
    theta1: float = 0.0
    theta2: float = 0.0
    omega1: float = 0.0
    omega2: float = 0.0

    @classmethod
    def initial(cls, params: SimulationParameters):
        return cls(
            theta1=float(np.deg2rad(params.initial_theta1_deg)),
            theta2=float(np.deg2rad(params.initial_theta2_deg)),
            omega1=float(params.initial_omega1),
            omega2=0.0,
        )

    @classmethod
    def from_array(cls, y):
        t1, t2, w1, w2 = (float(v) for v in y)
        return cls(t1, t2, w1, w2)

    def as_array(self):
        """Return state as array [theta1, theta2, omega1, omega2]."""
        return np.array([self.theta1, self.theta2, self.omega1, self.omega2])

    def is_finite(self):
        return bool(np.all(np.isfinite(self.as_array())))

    def copy(self):
        return dataclasses.replace(self)


class ControlSurface:
    """
    Named numeric parameters as exposed to sliders, plus the reset trigger.

    Only names known to SimulationParameters are accepted.
    """

    def __init__(self, values=None):
        self._values = dataclasses.asdict(SimulationParameters())
        self._reset_requested = False
        if values:
            self.update(values)

    def __getitem__(self, name):
        return self._values[name]

    def __setitem__(self, name, value):
        if name not in self._values:
            raise KeyError(f"unknown parameter: {name}")
        self._values[name] = float(value)

    def __contains__(self, name):
        return name in self._values

    def __iter__(self):
        return iter(self._values)

    def update(self, values):
        for name, value in values.items():
            self[name] = value

    def as_dict(self):
        return dict(self._values)

    def parameters(self) -> SimulationParameters:
        return SimulationParameters.from_mapping(self._values)

    def request_reset(self):
        self._reset_requested = True

    def consume_reset(self) -> bool:
        """Return True once per requested reset."""
        requested = self._reset_requested
        self._reset_requested = False
        return requested


def load_config(path):
    with open(path, "r") as f:
        return yaml.safe_load(f)


def controls_from_config(cfg) -> ControlSurface:
    """Seed a ControlSurface from the ``pendulum`` section of a config dict."""
    return ControlSurface(cfg.get("pendulum") or {})
