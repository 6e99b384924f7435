"""Templated artifact synthesis for each delivery phase."""

from specdrive.synthesis.pipeline import PHASE_PLAN, ArtifactSynthesizer, PlannedArtifact, phase_plan

__all__ = ["PHASE_PLAN", "ArtifactSynthesizer", "PlannedArtifact", "phase_plan"]
