"""zeroagent: skill lifecycle orchestrator."""

from zeroagent.config.const import AGENT_VERSION as __version__

__all__ = ["__version__"]
