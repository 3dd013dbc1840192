"""`accretion` - particle frame triage for bandwidth-limited downlink.

Subpackages:
- imaging: Frame IO, thresholding, component labeling, clustering, motion
- pipeline: Orchestrator, frame processor, downlink scheduler, tracking
- schemas: Layered pydantic configuration
- contracts: Stage invariants and typed frame errors
"""

__version__ = "0.1.0"
