"""
Exception hierarchy for roadmap planning.

Components raise these; the planning context catches them at the
configure/solve boundary and maps them to a PlanningResult.
"""


class RoadmapPlanningError(Exception):
    """Base class for all roadmap planning errors."""


class ConfigurationError(RoadmapPlanningError):
    """Planning context could not be configured (fatal for the context)."""


class GoalResolutionError(RoadmapPlanningError):
    """No goal candidate could be extracted from the goal constraints."""


class StartStateError(RoadmapPlanningError):
    """Start state in the request does not match the planning group."""


class SceneConversionError(RoadmapPlanningError):
    """Planning scene could not be converted into collision voxels."""


class ConstraintSamplerError(RoadmapPlanningError):
    """A constraint sampler was configured with an unusable constraint."""
