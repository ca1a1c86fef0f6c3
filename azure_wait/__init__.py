"""Azure Storage wait operators.

Workflow operators that wait for an Azure Storage blob or queue message
to appear, polling with a resumable, restart-safe backoff loop, and then
record a snapshot of the observed resource into the task's output.
"""

__version__ = "0.1.0"
