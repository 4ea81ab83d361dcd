"""
Agent tools - evidence lookup and action proposals
"""

from lumo.agents.tools.schemas import FetchContextArgs
from lumo.agents.tools.toolbox import Toolbox, tool_names, tool_spec

__all__ = ["FetchContextArgs", "Toolbox", "tool_names", "tool_spec"]
