"""Pipeline modules.

- orchestrator: StandardizationPipeline, the main controller
"""

from epdkit.pipeline.orchestrator import StandardizationPipeline

__all__ = [
    "StandardizationPipeline",
]
