"""Convergence control shared by the iterative solvers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import numpy as np
import yaml

SQRT_EPS = float(np.sqrt(np.finfo(np.float64).eps))


@dataclass(frozen=True)
class IterationOptions:
    """Iteration cap and tolerances on the L1 and sup norms of the change."""

    max_iter: int = 100
    tol1: float = SQRT_EPS
    tol_inf: float = SQRT_EPS

    def validate(self) -> None:
        if self.max_iter <= 0:
            raise ValueError("max_iter must be positive.")
        if self.tol1 < 0.0:
            raise ValueError("tol1 must be non-negative.")
        if self.tol_inf < 0.0:
            raise ValueError("tol_inf must be non-negative.")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "IterationOptions":
        """Build options from a mapping; missing keys keep their defaults."""
        defaults = cls()
        return cls(
            max_iter=int(payload.get("max_iter", defaults.max_iter)),
            tol1=float(payload.get("tol1", defaults.tol1)),
            tol_inf=float(payload.get("tol_inf", defaults.tol_inf)),
        )


def converged(delta, options: IterationOptions) -> bool:
    """True when both the L1 and sup norms of ``delta`` are within tolerance."""
    delta = np.asarray(delta, dtype=np.float64)
    return bool(
        np.linalg.norm(delta, 1) <= options.tol1
        and np.linalg.norm(delta, np.inf) <= options.tol_inf
    )


def save_iteration_options(options: IterationOptions, output_path: Path) -> None:
    """Serialize options to YAML."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(yaml.safe_dump(options.to_dict(), sort_keys=False))


def load_iteration_options(path: Path) -> IterationOptions:
    """Load options from YAML."""
    payload = yaml.safe_load(path.read_text())
    if not isinstance(payload, dict):
        raise ValueError("Expected a mapping in iteration options YAML.")
    options = IterationOptions.from_dict(payload)
    options.validate()
    return options
