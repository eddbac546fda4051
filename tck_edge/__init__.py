"""Sparkplug TCK edge node driver.

Listens on the SPARKPLUG_TCK control topics, runs edge-role scenarios
against a Sparkplug session and reports verdicts back to the TCK console.
"""

from .config import TCKEdgeConfig
from .node import TCKEdgeNode

__version__ = "0.1.0"

__all__ = ["TCKEdgeConfig", "TCKEdgeNode", "__version__"]
