"""
Contract evaluator boundary (state reads, dry-runs, interactions, creation).
"""

from .reader import ContractReader, DryRunResult, RpcContractReader  # noqa: F401

__all__ = ["ContractReader", "DryRunResult", "RpcContractReader"]
