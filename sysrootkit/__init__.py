"""
SysrootKit - cross compiled sysroots for Rust targets.

Builds a sysroot containing the standard library crates compiled for a
foreign target, next to the host runtime of the installed nightly
toolchain, so `rustc --sysroot` can link programs for that target.
"""

from sysrootkit.pipeline import PipelineResult, StageOutcome, SysrootPipeline

__all__ = ["PipelineResult", "StageOutcome", "SysrootPipeline"]
