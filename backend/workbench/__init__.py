"""
Workbench backend

Per-session application sandboxes: image build, host port allocation,
container lifecycle and remote file editing on top of a container runtime CLI.
"""

__version__ = "1.0.0"
