"""Developer workstation provisioner (checkpointed, resumable).

Core design goals:
- Checkpoint-driven and resumable
- Idempotent steps that re-check the machine every run
- A failing step never aborts its siblings
- Centralized logging and a per-user session transcript
"""

__all__ = []
