"""Exercise policies shared by the lattice and finite-difference engines."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from ..enums import ExerciseType
from ..exceptions import ConfigurationError

__all__ = [
    "ExercisePolicy",
    "EuropeanExercise",
    "AmericanExercise",
    "EUROPEAN",
    "AMERICAN",
    "exercise_policy",
]

EXPIRY_TOLERANCE = 1e-9


class ExercisePolicy(ABC):
    """Decides, node by node, whether immediate exercise beats continuation.

    Arguments may be scalars or arrays of a common shape; the result is a
    boolean array of that shape.
    """

    __slots__ = ()

    @abstractmethod
    def should_exercise(self, remaining_time, spot, intrinsic_value, continuation_value) -> np.ndarray:
        """Return True where the holder exercises."""

    @abstractmethod
    def is_european(self) -> bool:
        """True if exercise is only allowed at expiry."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class EuropeanExercise(ExercisePolicy):
    __slots__ = ()

    def should_exercise(self, remaining_time, spot, intrinsic_value, continuation_value) -> np.ndarray:
        at_expiry = np.asarray(remaining_time, dtype=float) < EXPIRY_TOLERANCE
        shape = np.broadcast(np.asarray(intrinsic_value), np.asarray(continuation_value)).shape
        return np.broadcast_to(at_expiry, shape)

    def is_european(self) -> bool:
        return True


class AmericanExercise(ExercisePolicy):
    __slots__ = ()

    def should_exercise(self, remaining_time, spot, intrinsic_value, continuation_value) -> np.ndarray:
        return np.asarray(intrinsic_value, dtype=float) > np.asarray(continuation_value, dtype=float)

    def is_european(self) -> bool:
        return False


EUROPEAN = EuropeanExercise()
AMERICAN = AmericanExercise()


def exercise_policy(exercise_type: ExerciseType | str) -> ExercisePolicy:
    """Map an ExerciseType to its stateless policy singleton."""
    if isinstance(exercise_type, str):
        exercise_type = ExerciseType(exercise_type)
    if exercise_type is ExerciseType.EUROPEAN:
        return EUROPEAN
    if exercise_type is ExerciseType.AMERICAN:
        return AMERICAN
    raise ConfigurationError(
        f"exercise_type must be ExerciseType enum, got {type(exercise_type).__name__}"
    )
