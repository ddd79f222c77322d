"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately and loudly when a stage does not produce the
invariants it promised.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- Domain errors (ripen.errors) report failures of the store or timer
"""

from ripen.contracts.failure import ContractViolation
from ripen.contracts.base import require
from ripen.contracts.image import assert_intensity_grid
from ripen.contracts.store import assert_provisioned

__all__ = [
    "ContractViolation",
    "require",
    "assert_intensity_grid",
    "assert_provisioned",
]
