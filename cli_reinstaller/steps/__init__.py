from .step_00_preflight import PreflightStep
from .step_10_remove_existing import RemoveExistingStep
from .step_20_optional_tools import OptionalToolsStep
from .step_30_ensure_runtime import EnsureRuntimeStep
from .step_40_install_target import InstallTargetStep
from .step_50_summary import SummaryStep

__all__ = [
    "PreflightStep",
    "RemoveExistingStep",
    "OptionalToolsStep",
    "EnsureRuntimeStep",
    "InstallTargetStep",
    "SummaryStep",
]
