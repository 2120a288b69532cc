"""
Pipeline stages.

Coercion and requiredness always run first. The remaining stages are
registered by name and run in the order a record definition lists them.
Custom stages subclass PipelineStage and are added with register_stage().
"""

from .base import STAGE_REGISTRY, PipelineStage, get_stage, recognized_options, register_stage
from .block import BlockStage
from .coerce import CoerceStage
from .derive import DeriveStage
from .guard import GuardStage
from .post_map import MapStage
from .required import RequiredStage
from .validations import ValidationsStage

for _stage in (DeriveStage(), ValidationsStage(), BlockStage(), GuardStage(), MapStage()):
    register_stage(_stage)

__all__ = [
    "PipelineStage",
    "STAGE_REGISTRY",
    "register_stage",
    "get_stage",
    "recognized_options",
    "CoerceStage",
    "RequiredStage",
    "DeriveStage",
    "ValidationsStage",
    "BlockStage",
    "GuardStage",
    "MapStage",
]
