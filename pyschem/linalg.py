"""Dense linear solvers with partial pivoting (real or complex).

Both kernels are JIT-compiled per matrix shape/dtype. Pivot selection uses
the magnitude (|x| for real, modulus for complex). A pivot smaller than
epsilon is perturbed by epsilon instead of failing, so a numerically
singular system (e.g. a floating sub-circuit) still yields a finite answer;
solve() and solve_backsub() log a warning when that happens; the analysis
drivers use the *_with_status variants and summarize through PivotTally.
"""

from __future__ import annotations
import logging

import jax
import jax.numpy as jnp
from jax import Array, lax

from .config import PIVOT_EPSILON

logger = logging.getLogger(__name__)


def _swap_pivot_row(M: Array, k: int, n: int) -> Array:
    """Move the largest-magnitude entry of column k (rows >= k) onto the diagonal."""
    rows = jnp.arange(n)
    magnitude = jnp.where(rows >= k, jnp.abs(M[:, k]), -1.0)
    p = jnp.argmax(magnitude)
    row_k = M[k]
    row_p = M[p]
    return M.at[k].set(row_p).at[p].set(row_k)


def _perturb_pivot(M: Array, k: int, epsilon: float) -> tuple[Array, Array]:
    pivot = M[k, k]
    small = jnp.abs(pivot) < epsilon
    return M.at[k, k].set(jnp.where(small, pivot + epsilon, pivot)), small


@jax.jit
def _gauss_jordan(A: Array, z: Array, epsilon: float) -> tuple[Array, Array]:
    n = A.shape[0]
    M = jnp.concatenate([A, z[:, None]], axis=1)

    def body(k, carry):
        M, perturbed = carry
        M = _swap_pivot_row(M, k, n)
        M, small = _perturb_pivot(M, k, epsilon)
        M = M.at[k].set(M[k] / M[k, k])
        # Eliminate column k from every other row (full reduction)
        factors = M[:, k].at[k].set(0)
        M = M - factors[:, None] * M[k][None, :]
        return M, perturbed | small

    M, perturbed = lax.fori_loop(0, n, body, (M, jnp.asarray(False)))
    return M[:, n], perturbed


@jax.jit
def _eliminate_backsub(A: Array, z: Array, epsilon: float) -> tuple[Array, Array]:
    n = A.shape[0]
    M = jnp.concatenate([A, z[:, None]], axis=1)
    rows = jnp.arange(n)

    def forward(k, carry):
        M, perturbed = carry
        M = _swap_pivot_row(M, k, n)
        M, small = _perturb_pivot(M, k, epsilon)
        factors = jnp.where(rows > k, M[:, k] / M[k, k], 0)
        M = M - factors[:, None] * M[k][None, :]
        return M, perturbed | small

    M, perturbed = lax.fori_loop(0, n, forward, (M, jnp.asarray(False)))

    def backward(j, x):
        i = n - 1 - j
        upper = jnp.where(rows > i, M[i, :n], 0)
        return x.at[i].set((M[i, n] - jnp.dot(upper, x)) / M[i, i])

    x = lax.fori_loop(0, n, backward, jnp.zeros(n, dtype=M.dtype))
    return x, perturbed


def _prepare(A, z) -> tuple[Array, Array]:
    A = jnp.asarray(A)
    z = jnp.asarray(z)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {A.shape}")
    if z.shape != (A.shape[0],):
        raise ValueError(f"Right-hand side shape {z.shape} does not match matrix {A.shape}")
    dtype = jnp.result_type(A, z)
    if not jnp.issubdtype(dtype, jnp.inexact):
        dtype = jnp.float64
    return A.astype(dtype), z.astype(dtype)


def _finish(x: Array, perturbed: Array, name: str) -> Array:
    if bool(perturbed):
        logger.warning(f"{name}: near-singular matrix, pivot perturbed by epsilon")
    return x


def solve_with_status(A, z, *, epsilon: float = PIVOT_EPSILON) -> tuple[Array, bool]:
    """Gauss-Jordan solve that reports pivot perturbation instead of logging it."""
    A, z = _prepare(A, z)
    if A.shape[0] == 0:
        return z, False
    x, perturbed = _gauss_jordan(A, z, epsilon)
    return x, bool(perturbed)


def solve_backsub_with_status(A, z, *, epsilon: float = PIVOT_EPSILON) -> tuple[Array, bool]:
    """Back-substitution solve that reports pivot perturbation instead of logging it."""
    A, z = _prepare(A, z)
    if A.shape[0] == 0:
        return z, False
    x, perturbed = _eliminate_backsub(A, z, epsilon)
    return x, bool(perturbed)


def solve(A, z, *, epsilon: float = PIVOT_EPSILON) -> Array:
    """
    Solve A x = z by Gauss-Jordan elimination with partial pivoting.

    Every row is normalized by its pivot and the pivot column is eliminated
    from all other rows, so x is read directly from the reduced right-hand
    side.

    Args:
        A: Square (n, n) matrix, real or complex
        z: Right-hand side (n,)
        epsilon: Pivot magnitude below which the diagonal is perturbed

    Returns:
        Solution vector x (n,), in the common dtype of A and z
    """
    x, perturbed = solve_with_status(A, z, epsilon=epsilon)
    return _finish(x, perturbed, "solve")


def solve_backsub(A, z, *, epsilon: float = PIVOT_EPSILON) -> Array:
    """
    Solve A x = z by forward elimination with partial pivoting, then back-substitution.

    Numerically equivalent to solve() on well-conditioned systems.
    """
    x, perturbed = solve_backsub_with_status(A, z, epsilon=epsilon)
    return _finish(x, perturbed, "solve_backsub")


class PivotTally:
    """
    Counts perturbed solves over one analysis run.

    Drivers solve hundreds of systems; a single summary warning replaces
    one warning per solve.
    """

    def __init__(self):
        self.solves = 0
        self.perturbed = 0

    def add(self, perturbed: bool) -> None:
        self.solves += 1
        if perturbed:
            self.perturbed += 1

    def report(self, analysis: str) -> None:
        if self.perturbed:
            logger.warning(
                f"{analysis}: {self.perturbed} of {self.solves} solves had a near-singular "
                f"matrix, pivot perturbed by epsilon"
            )
