"""
流水线各阶段共享的轻量类型定义。
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Outcome(Enum):
    """单个阶段的执行结果分类。"""

    SUCCESS = "success"
    # 可选资源缺失（模板、图标），阶段继续。
    SOFT_SKIP = "soft-skip"
    # 阶段内部失败，已记录诊断信息，流水线继续。
    SOFT_FAILURE = "soft-failure"
    # 目标已存在，无需修改。
    NOOP = "noop"


@dataclass
class StageResult:
    """描述一个阶段的结果与诊断信息。"""

    stage: str
    outcome: Outcome = Outcome.SUCCESS
    diagnostics: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    def note(self, message: str) -> None:
        """记录一条普通诊断并输出。"""
        self.diagnostics.append(message)
        log_step(message)

    def skip(self, message: str) -> None:
        """记录可选资源缺失；不会覆盖更严重的结果。"""
        self.diagnostics.append(message)
        log_step(message)
        if self.outcome == Outcome.SUCCESS:
            self.outcome = Outcome.SOFT_SKIP

    def fail(self, message: str, trace: str = "") -> None:
        """标记阶段软失败，并把堆栈附加到诊断信息。"""
        self.outcome = Outcome.SOFT_FAILURE
        self.diagnostics.append(message)
        log_warning(message)
        if trace:
            self.diagnostics.append(trace)
            print(trace, file=sys.stderr, end="" if trace.endswith("\n") else "\n")


@dataclass
class RunReport:
    """一次完整流水线运行的汇总报告。"""

    stages: list[StageResult] = field(default_factory=list)
    # 最终（可能部分修改的）工程对象图；无法加载时为 `None`。
    graph: Any = None

    def add(self, result: StageResult) -> StageResult:
        self.stages.append(result)
        return result

    def stage(self, name: str) -> StageResult | None:
        for result in self.stages:
            if result.stage == name:
                return result
        return None

    @property
    def has_failures(self) -> bool:
        return any(r.outcome == Outcome.SOFT_FAILURE for r in self.stages)


def log_step(message: str) -> None:
    """输出简洁的流程阶段提示。"""
    print(f"[widget-injector] {message}")


def log_warning(message: str) -> None:
    """输出警告到 stderr。"""
    print(f"[widget-injector] Warning: {message}", file=sys.stderr)
