from .phase_scheduler import INTERVENTION_COMMANDS, PhaseScheduler

__all__ = ["INTERVENTION_COMMANDS", "PhaseScheduler"]
