"""
Agentdash - worktree, session and diff aggregation for the agent dashboard.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("agentdash")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0+local"
