"""
将 WidgetKit 桥接模块源码复制到主应用目录。
"""

from __future__ import annotations

import os
import traceback

from .config import WidgetConfig
from .scaffold import copy_templates
from .types import StageResult

STAGE = "modules"


def run_module_installer(host_source_dir: str, cfg: WidgetConfig, *, templates_dir: str) -> StageResult:
    """流水线第 3 阶段：安装桥接模块文件，缺失的模板仅记录。"""
    result = StageResult(STAGE)
    try:
        os.makedirs(host_source_dir, exist_ok=True)
        result.details["copied"] = copy_templates(
            cfg.module_files,
            templates_dir=templates_dir,
            dest_dir=host_source_dir,
            result=result,
            label="iOS project",
        )
    except Exception as e:
        result.fail(
            f"Failed to install native module files into {host_source_dir}: {e}",
            traceback.format_exc(),
        )
    return result
