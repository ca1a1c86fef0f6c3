"""Durable Functions activity implementations.

- run_tick: run one wait operator tick
"""
