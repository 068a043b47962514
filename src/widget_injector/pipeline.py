"""
小组件扩展注入流水线。

整体流程：
1) 将共享 App Group 合并到主应用签名权限。
2) 生成扩展目录（源码占位、签名权限、Info.plist、资源目录）。
3) 复制 WidgetKit 桥接模块到主应用目录。
4) 解析 `project.pbxproj`，创建扩展目标并覆盖其构建设置，写回磁盘。

各阶段顺序执行、互不回滚；任一阶段失败只记入报告，不中断后续阶段。
重复运行是安全的。
"""

from __future__ import annotations

import os
import traceback

from .config import WidgetConfig
from .entitlements import run_entitlement_merger
from .layout import ProjectLayout, resolve_layout
from .modules import run_module_installer
from .patcher import STAGE as PROJECT_STAGE
from .patcher import patch_project
from .pbx_codec import load_project, save_project
from .pbx_graph import ProjectGraph
from .scaffold import run_scaffolder
from .types import RunReport, StageResult, log_step


def default_templates_dir(project_root: str) -> str:
    return os.path.join(os.path.abspath(project_root), "plugins", "ios-widget", "widget-files")


def run_project_mod(graph: ProjectGraph, cfg: WidgetConfig) -> tuple[ProjectGraph, StageResult]:
    """进程内入口：修改传入的对象图并原样返回，供宿主构建工具直接调用。"""
    return graph, patch_project(graph, cfg)


def _run_project_stage(layout: ProjectLayout, cfg: WidgetConfig, report: RunReport) -> StageResult:
    path = layout.pbxproj_path
    try:
        graph = load_project(path)
    except Exception as e:
        result = StageResult(PROJECT_STAGE)
        result.fail(f"Failed to load project {path}: {e}", traceback.format_exc())
        return result

    report.graph = graph
    _, result = run_project_mod(graph, cfg)
    if not result.details.get("mutated"):
        return result

    try:
        save_project(graph, path)
    except Exception as e:
        result.fail(f"Failed to write project {path}: {e}", traceback.format_exc())
        return result
    result.note(f"Project written: {path}")
    return result


def run_pipeline(
    project_root: str,
    cfg: WidgetConfig,
    *,
    templates_dir: str = "",
    project_name: str = "",
) -> RunReport:
    """对工程根目录执行完整流水线，返回运行报告（含最终对象图）。"""
    layout = resolve_layout(project_root, project_name)
    templates = templates_dir or default_templates_dir(layout.project_root)
    report = RunReport()

    log_step(f"Project: {layout.xcodeproj_dir}")
    log_step(f"Templates: {templates}")

    log_step("Merging app group entitlement")
    report.add(run_entitlement_merger(layout.host_entitlements_path, cfg))

    log_step("Creating widget extension files")
    report.add(
        run_scaffolder(
            layout.extension_dir(cfg),
            cfg,
            templates_dir=templates,
            host_icon=layout.host_icon_path(cfg),
        )
    )

    log_step("Installing native module files")
    report.add(run_module_installer(layout.host_source_dir, cfg, templates_dir=templates))

    log_step("Patching Xcode project")
    report.add(_run_project_stage(layout, cfg, report))

    for result in report.stages:
        log_step(f"{result.stage}: {result.outcome.value}")
    return report
