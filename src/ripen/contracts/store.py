"""Store provisioning contract.

Enforces the guarantee that before a bake starts, every row bucket exists
and holds exactly {0, ..., ripeness-1}.
"""

from ripen.contracts.base import require


def assert_provisioned(store, ny: int, ripeness: int) -> None:
    """Enforce provisioning contract.

    Parameters
    ----------
    store : BucketStore
        Store to inspect.
    ny : int
        Number of image rows (expected bucket count).
    ripeness : int
        Expected initial bucket size.

    Raises
    ------
    ContractViolation
        If a bucket is missing or does not hold exactly 0..ripeness-1
    """
    require(
        store.row_count() == ny,
        f"Store contract violated: {store.row_count()} buckets, expected {ny}"
    )

    snapshot = store.snapshot()
    for row, remaining, min_value, max_value in snapshot[
            ["row", "remaining", "min_value", "max_value"]].itertuples(index=False):
        require(
            remaining == ripeness,
            f"Store contract violated: bucket {row} holds {remaining} values, expected {ripeness}"
        )
        if ripeness > 0:
            require(
                min_value == 0 and max_value == ripeness - 1,
                f"Store contract violated: bucket {row} spans [{min_value}, {max_value}], "
                f"expected [0, {ripeness - 1}]"
            )
