# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Result Types

TypedDict records returned by solvers and exposed as read-only snapshots to
the rendering layer. Result types are TypedDict so they serialize trivially
and can be consumed without importing engine classes.

Snapshot records always hold copies: mutating a returned array never
affects the engine.
"""

from typing import Optional

import numpy as np
from typing_extensions import TypedDict

from resosim.types.core import StateArray, StateVector


class StepResult(TypedDict, total=False):
    """
    Result of a single solver call over one requested interval.

    Attributes
    ----------
    state : StateVector
        State at t + dt_consumed
    dt_consumed : float
        Simulated time actually advanced (always equals the requested dt)
    error : Optional[float]
        Largest local error estimate among accepted sub-steps, None for
        fixed-step solvers
    degraded : bool
        True when an adaptive solver could not meet its tolerance within its
        attempt cap or step-size floor and forced a step
    nfev : int
        Derivative evaluations used
    n_accepted : int
        Accepted sub-steps
    n_rejected : int
        Rejected attempts

    Examples
    --------
    >>> result = solver.step(rhs, 0.0, np.array([1.0, 0.0]), 0.01)
    >>> result["state"]
    array([...])
    >>> if result["degraded"]:
    ...     print("tolerance not met")
    """

    state: StateVector
    dt_consumed: float
    error: Optional[float]
    degraded: bool
    nfev: int
    n_accepted: int
    n_rejected: int


class ResonanceSnapshot(TypedDict):
    """
    Read-only view of a ResonanceModel after a tick.

    Attributes
    ----------
    time : float
        Elapsed simulation time
    states : StateArray
        (N, 2) copy of [position, velocity] per oscillator
    driving_frequency : float
        ω(t) in rad/s at the snapshot time
    driving_force : float
        A·cos(ω(t)·t) at the snapshot time
    degraded : np.ndarray
        (N,) bool, last step of oscillator i was accuracy-degraded
    unstable : np.ndarray
        (N,) bool, oscillator i hit a non-finite state and was rolled back
    driver_work : np.ndarray
        (N,) work done by the driving force ∫F·v dt since reset (J)
    thermal_energy : np.ndarray
        (N,) energy dissipated by damping ∫c·v² dt since reset (J)
    rms_position : np.ndarray
        (N,) root-mean-square displacement √(∫x² dt / t)
    rms_velocity : np.ndarray
        (N,) root-mean-square velocity √(∫v² dt / t)
    """

    time: float
    states: StateArray
    driving_frequency: float
    driving_force: float
    degraded: np.ndarray
    unstable: np.ndarray
    driver_work: np.ndarray
    thermal_energy: np.ndarray
    rms_position: np.ndarray
    rms_velocity: np.ndarray


class ResonanceCurveData(TypedDict):
    """
    Sampled steady-state response table.

    Attributes
    ----------
    frequency : np.ndarray
        Angular frequencies (K,)
    amplitude : np.ndarray
        Steady-state displacement amplitudes (K,)
    phase : np.ndarray
        Phase lag of displacement behind the force, radians in [0, π] (K,)
    """

    frequency: np.ndarray
    amplitude: np.ndarray
    phase: np.ndarray


class StrengthCurveData(TypedDict):
    """
    Plate resonance strength table.

    Attributes
    ----------
    frequency : np.ndarray
        Frequencies in Hz (K,)
    strength : np.ndarray
        Raw modal-superposition strength (K,)
    normalized : np.ndarray
        strength divided by its maximum, zeros when the maximum is zero
    """

    frequency: np.ndarray
    strength: np.ndarray
    normalized: np.ndarray


class ParticleSnapshot(TypedDict):
    """
    Read-only view of a ParticleManager.

    Attributes
    ----------
    positions : np.ndarray
        (P, 2) copy of particle positions
    count : int
        Population size
    advances : int
        Number of advance() calls since the last (re)initialization
    """

    positions: np.ndarray
    count: int
    advances: int


__all__ = [
    "StepResult",
    "ResonanceSnapshot",
    "ResonanceCurveData",
    "StrengthCurveData",
    "ParticleSnapshot",
]
