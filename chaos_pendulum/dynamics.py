"""
Double pendulum dynamics — Lagrangian equations of motion.

Two point masses at the ends of massless rods, the first pivoted to a
fixed point and the second hung from the end of the first. Link 1
additionally receives a constant "momentum boost" in its numerator: an
intentional forcing term that keeps energy from getting trapped so the
system keeps completing large swings. It is not a physical correction.

Angle convention: the equations below use theta2 as the second generalized
coordinate, entering the gravity and coupling terms as if it were the
absolute angle of link 2 from the downward vertical. The pose and the
rod-2 drag instead read theta2 as relative to link 1 and draw rod 2 at
theta1 + theta2. The two readings are mixed deliberately and reproduce the interactive
model. A consistent relative-angle model needs different equations.
"""

import numpy as np

# Below this the mass matrix is treated as singular.
DENOMINATOR_EPSILON = 1e-9


class DegenerateDynamicsError(ArithmeticError):
    """The mass matrix is singular or the accelerations are not finite."""


def derivative(theta1, theta2, omega1, omega2, params):
    """
    Compute (dTheta1, dTheta2, dOmega1, dOmega2) for one state.

    Pure function of its arguments, so it can be evaluated at the
    hypothetical intermediate states of a multi-stage integrator.
    Requires positive lengths and masses.
    """
    m1, m2 = params.rod1_mass, params.rod2_mass
    l1, l2 = params.rod1_length, params.rod2_length
    g, boost = params.gravity, params.rod1_momentum_boost

    delta = theta2 - theta1
    cos_d = np.cos(delta)
    sin_d = np.sin(delta)

    den1 = (m1 + m2) * l1 - m2 * l1 * cos_d * cos_d
    if not abs(den1) > DENOMINATOR_EPSILON:
        raise DegenerateDynamicsError(f"singular mass matrix (den1={den1!r})")
    den2 = (l2 / l1) * den1
    if not abs(den2) > DENOMINATOR_EPSILON:
        raise DegenerateDynamicsError(f"singular mass matrix (den2={den2!r})")

    dw1 = (
        m2 * l1 * omega1 * omega1 * sin_d * cos_d
        + m2 * g * np.sin(theta2) * cos_d
        + m2 * l2 * omega2 * omega2 * sin_d
        - (m1 + m2) * g * np.sin(theta1)
        + boost
    ) / den1

    dw2 = (
        -m2 * l2 * omega2 * omega2 * sin_d * cos_d
        + (m1 + m2) * g * np.sin(theta1) * cos_d
        - (m1 + m2) * l1 * omega1 * omega1 * sin_d
        - (m1 + m2) * g * np.sin(theta2)
    ) / den2

    if not (np.isfinite(dw1) and np.isfinite(dw2)):
        raise DegenerateDynamicsError("non-finite angular acceleration")

    return omega1, omega2, float(dw1), float(dw2)


def derivatives(y, params):
    """Array form of derivative() for state vectors [t1, t2, w1, w2]."""
    return np.array(derivative(y[0], y[1], y[2], y[3], params), dtype=float)


def total_energy(state, params):
    """Total mechanical energy (kinetic + potential), boost excluded."""
    t1, t2, w1, w2 = state.theta1, state.theta2, state.omega1, state.omega2
    m1, m2 = params.rod1_mass, params.rod2_mass
    l1, l2, g = params.rod1_length, params.rod2_length, params.gravity

    # Kinetic
    T = (0.5 * m1 * (l1 * w1) ** 2
         + 0.5 * m2 * ((l1 * w1) ** 2 + (l2 * w2) ** 2
                       + 2 * l1 * l2 * w1 * w2 * np.cos(t1 - t2)))
    # Potential
    V = -(m1 + m2) * g * l1 * np.cos(t1) - m2 * g * l2 * np.cos(t2)

    return float(T + V)
