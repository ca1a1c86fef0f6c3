"""Wait operators.

Each operator is a plain function ``(request, state, secrets, *, settings)
-> TaskResult`` that builds a check closure for its resource and runs one
tick of the shared polling core.

- base: task request, parameter handling, the shared wait tick
- blob_wait: wait for a blob under a prefix
- queue_wait: wait for a peekable queue message
- factory: operator registry
"""
