"""Centralized failure type for contract violations.

Contracts fail fast, loud, and once. All violations raise the same
exception type, allowing caller to handle pipeline bugs uniformly.
"""


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in pipeline logic or a collaborator that broke its
    promise (e.g. a decoder that returned a 3-D grid), not a transient store
    failure.

    Key distinction:
    - ValueError: User/config error (handled by Pydantic)
    - ContractViolation: Pipeline bug (programmer error)
    - ExecutionError: Store failure during a bake
    """
    pass
