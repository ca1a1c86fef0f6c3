"""Resumable polling core.

- backoff: attempt count -> wait interval
- retry: retryable-vs-fatal classifiers
- executor: one counted, classified poll attempt
- waiter: per-tick shell that hands suspension back to the engine
"""
