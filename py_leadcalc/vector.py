"""3D Vector Mathematics.

The Vector3 class is implemented as an immutable NamedTuple: every operation returns a
new instance, so vectors can be shared freely between the integrator, the trajectory
evaluator and the cache layer.

World frame convention (East-North-Up):
    - x: east (metres or m/s)
    - y: north
    - z: up

Typical Usage:
    ```python
    from py_leadcalc import Vector3

    position = Vector3(0.0, 0.0, 0.0)
    velocity = Vector3(0.0, 800.0, 100.0)  # m/s, north and climbing
    new_position = position + velocity * (1 / 60)
    speed = velocity.magnitude()
    up = Vector3(1.0, 0.0, 0.0).cross(Vector3(0.0, 1.0, 0.0))  # Vector3(0, 0, 1)
    ```
"""
from __future__ import annotations

import math
from typing import Union, NamedTuple

__all__ = ('Vector3', 'ZERO_VECTOR')


class Vector3(NamedTuple):
    """Immutable 3D vector in the East-North-Up world frame.

    Attributes:
        x: East component.
        y: North component.
        z: Up component.

    NaN and infinite components are not valid values; they mark a failed computation
    and can be detected with `is_finite()`.
    """

    x: float
    y: float
    z: float

    def magnitude(self) -> float:
        """Euclidean norm of the vector.

        Note:
            Uses math.hypot() for numerical stability with extreme values.
        """
        return math.hypot(self.x, self.y, self.z)

    def mul_by_const(self, a: float) -> Vector3:
        """Multiply vector by a scalar constant."""
        return Vector3(self.x * a, self.y * a, self.z * a)

    def dot(self, b: Vector3) -> float:
        """Dot product (x₁·x₂ + y₁·y₂ + z₁·z₂)."""
        return self.x * b.x + self.y * b.y + self.z * b.z

    def cross(self, b: Vector3) -> Vector3:
        """Cross product self × b (right-handed).

        Examples:
            ```python
            east = Vector3(1.0, 0.0, 0.0)
            north = Vector3(0.0, 1.0, 0.0)
            east.cross(north)  # Vector3(0.0, 0.0, 1.0), i.e. up
            ```
        """
        return Vector3(self.y * b.z - self.z * b.y,
                       self.z * b.x - self.x * b.z,
                       self.x * b.y - self.y * b.x)

    def add(self, b: Vector3) -> Vector3:
        """Add two vectors component-wise."""
        return Vector3(self.x + b.x, self.y + b.y, self.z + b.z)

    def subtract(self, b: Vector3) -> Vector3:
        """Subtract vector b from this vector component-wise."""
        return Vector3(self.x - b.x, self.y - b.y, self.z - b.z)

    def negate(self) -> Vector3:
        """Vector with every component negated."""
        return Vector3(-self.x, -self.y, -self.z)

    def normalize(self) -> Vector3:
        """Unit vector pointing in the same direction.

        Returns:
            A unit vector, or a copy of this vector when its magnitude is below 1e-10
            (normalizing the zero vector yields the zero vector).
        """
        m = self.magnitude()
        if math.fabs(m) < 1e-10:
            return Vector3(self.x, self.y, self.z)
        return self.mul_by_const(1.0 / m)

    def is_finite(self) -> bool:
        """True when no component is NaN or infinite."""
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def horizontal(self) -> Vector3:
        """Projection onto the horizontal (east-north) plane."""
        return Vector3(self.x, self.y, 0.0)

    def __mul__(self, other: Union[int, float, Vector3]) -> Union[float, Vector3]:  # type: ignore[override]
        """Scalar multiplication, or dot product when `other` is a Vector3.

        Raises:
            TypeError: If `other` is neither a number nor a Vector3.
        """
        if isinstance(other, (int, float)):
            return Vector3(self.x * other, self.y * other, self.z * other)
        if isinstance(other, Vector3):
            return self.x * other.x + self.y * other.y + self.z * other.z
        raise TypeError(other)

    # Operator overloads - aliases more efficient than wrappers
    def __add__(self, other: Vector3) -> Vector3:  # type: ignore[override]
        return self.add(other)

    def __radd__(self, other: Vector3) -> Vector3:  # type: ignore[override]
        return self.add(other)

    def __iadd__(self, other: Vector3) -> Vector3:  # type: ignore[override]
        return self.add(other)

    def __sub__(self, other: Vector3) -> Vector3:  # type: ignore[override]
        return self.subtract(other)

    def __isub__(self, other: Vector3) -> Vector3:  # type: ignore[override]
        return self.subtract(other)

    def __rmul__(self, other: Union[int, float, Vector3]) -> Union[float, Vector3]:  # type: ignore[override]
        return self.__mul__(other)

    def __imul__(self, other: Union[int, float, Vector3]) -> Union[float, Vector3]:  # type: ignore[override]
        return self.__mul__(other)

    def __neg__(self) -> Vector3:  # type: ignore[override]
        return self.negate()


ZERO_VECTOR: Vector3 = Vector3(0.0, 0.0, 0.0)
