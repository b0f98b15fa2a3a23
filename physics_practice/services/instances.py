"""Random instances of problem templates."""
from __future__ import annotations

import hashlib
import math
import random
import re
from typing import Any, Dict, Mapping, Optional

from physics_practice.core.config import SECRET_KEY
from physics_practice.core.errors import ValidationFailure

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z_0-9]*)\}")


def instance_rng(student_username: str, assignment_id: int, problem_id: int) -> random.Random:
    """
    RNG seeded from the (student, assignment, problem) key.

    The same key always yields the same draw, so the preview a student reads
    before answering matches the instance frozen on their first submission.
    """
    key = f"{SECRET_KEY}:{student_username}:{assignment_id}:{problem_id}"
    seed = int.from_bytes(hashlib.sha256(key.encode("utf-8")).digest()[:8], "big")
    return random.Random(seed)


def generate(
    variables: Mapping[str, Mapping[str, Any]],
    rng: Optional[random.Random] = None,
) -> Dict[str, float]:
    """Draw one value per variable uniformly from its [min, max) range."""
    rng = rng or random.Random()
    values: Dict[str, float] = {}
    # sorted so a seeded rng gives the same values whatever the JSON key order
    for name in sorted(variables):
        lo = float(variables[name]["min"])
        hi = float(variables[name]["max"])
        value = lo + rng.random() * (hi - lo)
        # float rounding can land exactly on hi for wide ranges
        if value >= hi > lo:
            value = lo
        values[name] = value
    return values


def render(template: str, values: Mapping[str, float]) -> str:
    """
    Substitute every `{name}` placeholder with its value to two decimals.

    All occurrences are replaced, including repeats of the same placeholder.
    Placeholders without a value are left as-is.
    """

    def _sub(m: re.Match) -> str:
        name = m.group(1)
        if name not in values:
            return m.group(0)
        return f"{values[name]:.2f}"

    return _PLACEHOLDER_RE.sub(_sub, template)


def validate_ranges(variables: Mapping[str, Any]) -> None:
    if not variables:
        raise ValidationFailure("At least one variable is required.")

    for name, rng in variables.items():
        if not re.fullmatch(r"[A-Za-z_][A-Za-z_0-9]*", name):
            raise ValidationFailure(f"Invalid variable name {name!r}.")
        if not isinstance(rng, Mapping) or "min" not in rng or "max" not in rng:
            raise ValidationFailure(f"Variable {name!r} needs a min and a max.")

        bounds = []
        for key in ("min", "max"):
            v = rng[key]
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise ValidationFailure(f"Variable {name!r}: {key} must be a finite number.")
            bounds.append(float(v))

        if bounds[0] > bounds[1]:
            raise ValidationFailure(f"Variable {name!r}: min must not exceed max.")
