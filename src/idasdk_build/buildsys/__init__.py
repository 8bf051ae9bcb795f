"""
idasdk_build.buildsys: the host build model and its setuptools lowering.

Modules:
    context        - BuildContext, the per-configuration target namespace
    targets        - Target, CustomTarget, InstallRule, TargetKind
    setuptools_ext - Extension/build_clib lowering and build commands
"""

from .context import BuildContext
from .targets import CustomTarget, InstallRule, Target, TargetKind

__all__ = ["BuildContext", "CustomTarget", "InstallRule", "Target", "TargetKind"]
