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
Symbolic Oscillator - SymPy Model of the Driven Damped Oscillator

Defines the equation of motion

    m·x'' + c·x' + k·x = F(t),    F(t) = A·cos(ω·t)

and its steady-state solution symbolically, then compiles both to NumPy
callables. The resonance model integrates the compiled acceleration; the
resonance curve calculator evaluates the compiled steady-state response.

Steady state
------------
Substituting x = X·exp(iωt) gives X = A / (k − mω² + icω). The displacement
amplitude is |X| and the phase lag behind the force is arg(k − mω² + icω).

Compiled functions broadcast over NumPy arrays, so one call evaluates a full
frequency table or every oscillator at once.

Examples
--------
>>> compiled = compile_oscillator()
>>> compiled.acceleration(0.1, 0.0, 0.0, 1.0, 0.5, 100.0)   # x, v, F, m, c, k
-10.0
>>> compiled.amplitude(np.array([5.0, 10.0]), 1.0, 1.0, 0.5, 100.0)
array([...])
"""

from functools import lru_cache
from typing import Callable, NamedTuple

import numpy as np
import sympy as sp

# ============================================================================
# Symbols
# ============================================================================

x, v = sp.symbols("x v", real=True)
t = sp.Symbol("t", real=True)
m, k = sp.symbols("m k", positive=True)
c = sp.Symbol("c", nonnegative=True)
A, omega = sp.symbols("A omega", real=True)
F = sp.Symbol("F", real=True)


# ============================================================================
# Expressions
# ============================================================================


def driving_force_expression() -> sp.Expr:
    """A·cos(ω·t)"""
    return A * sp.cos(omega * t)


def acceleration_expression() -> sp.Expr:
    """Solve m·a + c·v + k·x = F for the acceleration a."""
    a = sp.Symbol("a", real=True)
    eom = sp.Eq(m * a + c * v + k * x, F)
    return sp.solve(eom, a)[0]


def state_derivative_expression() -> sp.Matrix:
    """First-order form d/dt [x, v] = [v, a]."""
    return sp.Matrix([v, acceleration_expression()])


def response_denominator() -> sp.Expr:
    """Complex dynamic stiffness k − mω² + i·c·ω."""
    return k - m * omega**2 + sp.I * c * omega


def steady_state_expressions():
    """
    Closed-form steady-state amplitude and phase lag.

    Returns
    -------
    Tuple[sp.Expr, sp.Expr]
        (A / |D|, arg D) with D = k − mω² + icω
    """
    denominator = response_denominator()
    re_part = sp.re(denominator)
    im_part = sp.im(denominator)
    amplitude = A / sp.sqrt(re_part**2 + im_part**2)
    phase = sp.atan2(im_part, re_part)
    return amplitude, phase


def peak_frequency_radicand() -> sp.Expr:
    """
    Square of the amplitude-peak frequency.

    Setting d|X|²/dω = 0 gives ω² = k/m − c²/(2m²). A non-positive value
    means the response peaks at ω = 0.
    """
    denominator = response_denominator()
    u = sp.Symbol("u", real=True)
    magnitude_sq = sp.expand(sp.re(denominator) ** 2 + sp.im(denominator) ** 2)
    stationary = sp.diff(magnitude_sq.subs(omega**2, u), u)
    return sp.solve(stationary, u)[0]


# ============================================================================
# Compilation
# ============================================================================


class CompiledOscillator(NamedTuple):
    """
    NumPy callables generated from the symbolic model.

    Attributes
    ----------
    acceleration : Callable
        (x, v, F, m, c, k) -> a
    driving_force : Callable
        (t, A, omega) -> F
    amplitude : Callable
        (omega, A, m, c, k) -> steady-state displacement amplitude
    phase : Callable
        (omega, m, c, k) -> phase lag in [0, π]
    peak_radicand : Callable
        (m, c, k) -> ω_peak² (may be negative)
    """

    acceleration: Callable
    driving_force: Callable
    amplitude: Callable
    phase: Callable
    peak_radicand: Callable


def _lambdify(symbols, expr) -> Callable:
    return sp.lambdify(symbols, expr, modules=["numpy"])


@lru_cache(maxsize=None)
def compile_oscillator() -> CompiledOscillator:
    """
    Compile the symbolic oscillator once per process.

    Returns
    -------
    CompiledOscillator
        Broadcasting NumPy callables
    """
    amplitude, phase = steady_state_expressions()

    return CompiledOscillator(
        acceleration=_lambdify((x, v, F, m, c, k), acceleration_expression()),
        driving_force=_lambdify((t, A, omega), driving_force_expression()),
        amplitude=_lambdify((omega, A, m, c, k), amplitude),
        phase=_lambdify((omega, m, c, k), phase),
        peak_radicand=_lambdify((m, c, k), peak_frequency_radicand()),
    )


def make_state_derivative(
    mass: float,
    damping: float,
    spring_constant: float,
    force: Callable[[float], float],
) -> Callable[[float, np.ndarray], np.ndarray]:
    """
    Bind one oscillator's parameters into an ODE right-hand side.

    Parameters
    ----------
    mass, damping, spring_constant : float
        Oscillator parameters
    force : Callable[[float], float]
        Driving force as a function of time, evaluated at each stage time

    Returns
    -------
    Callable
        rhs(t, [x, v]) -> [v, a]
    """
    acceleration = compile_oscillator().acceleration

    def rhs(time: float, state: np.ndarray) -> np.ndarray:
        position, velocity = state[0], state[1]
        a = acceleration(position, velocity, force(time), mass, damping, spring_constant)
        return np.array([velocity, a], dtype=float)

    return rhs


__all__ = [
    "CompiledOscillator",
    "acceleration_expression",
    "compile_oscillator",
    "driving_force_expression",
    "make_state_derivative",
    "peak_frequency_radicand",
    "response_denominator",
    "state_derivative_expression",
    "steady_state_expressions",
]
