"""Durable Functions orchestrators.

- wait_pipeline: tick loop that re-invokes a wait operator until satisfied
"""
