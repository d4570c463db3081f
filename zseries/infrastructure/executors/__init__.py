"""
Infrastructure: Executors
"""

from .local_executor import LocalPartitionExecutor

__all__ = ["LocalPartitionExecutor"]
