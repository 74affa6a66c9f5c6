"""Public smoke tests for basic module wiring.

Keep these minimal and free of any real-world data.
"""

from __future__ import annotations


def test_imports() -> None:
    import expensescan
    import expensescan.cli.main
    import expensescan.domain
    import expensescan.receipt.providers
    import expensescan.runtime
    import expensescan.runtime.receipt_pipeline

    assert expensescan is not None
    assert expensescan.cli.main is not None
    assert expensescan.domain is not None
    assert expensescan.receipt.providers is not None
    assert expensescan.runtime is not None
    assert expensescan.runtime.receipt_pipeline is not None
