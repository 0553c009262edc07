"""Reconciliation engine: probe, plan, apply."""

from .applier import ApplyOptions, PlanApplier, apply
from .configs import OVERRIDE_FOLDERS, ConfigSyncResult, sync_overrides
from .instance import InstanceTarget, probe_instance
from .planner import plan, sync_status
from .reconciler import Reconciler

__all__ = [
    "ApplyOptions",
    "PlanApplier",
    "apply",
    "OVERRIDE_FOLDERS",
    "ConfigSyncResult",
    "sync_overrides",
    "InstanceTarget",
    "probe_instance",
    "plan",
    "sync_status",
    "Reconciler",
]
