"""
签名权限（`entitlements`）合并辅助模块。

主应用与小组件扩展必须处于同一个 App Group，共享数据桥才能工作。
"""

from __future__ import annotations

import os
import traceback

from .config import APP_GROUPS_KEY, WidgetConfig
from .plist_edit import array_add_unique, load_plist, save_plist_xml
from .types import StageResult

STAGE = "entitlements"


def merge_app_group(ent: dict, group_id: str) -> bool:
    """确保 `group_id` 在 App Group 列表中恰好出现一次，返回是否修改。"""
    return array_add_unique(ent, APP_GROUPS_KEY, group_id)


def extension_entitlements(group_id: str) -> dict:
    """生成扩展目标使用的签名权限字典。"""
    return {APP_GROUPS_KEY: [group_id]}


def merge_app_group_file(path: str, group_id: str) -> bool:
    """对磁盘上的签名权限文件执行合并；文件不存在时新建。"""
    ent: dict = {}
    if os.path.isfile(path):
        obj = load_plist(path)
        if not isinstance(obj, dict):
            raise TypeError(f"entitlements plist is not a dict: {path}")
        ent = obj

    changed = merge_app_group(ent, group_id)
    if changed or not os.path.isfile(path):
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        save_plist_xml(path, ent)
    return changed


def run_entitlement_merger(entitlements_path: str, cfg: WidgetConfig) -> StageResult:
    """流水线第 1 阶段：把共享 App Group 合并到主应用签名权限。"""
    result = StageResult(STAGE)
    try:
        changed = merge_app_group_file(entitlements_path, cfg.shared_group_id)
    except Exception as e:
        result.fail(
            f"Failed to merge app group into {entitlements_path}: {e}",
            traceback.format_exc(),
        )
        return result

    result.details["changed"] = changed
    if changed:
        result.note(f"Added app group {cfg.shared_group_id} to main app entitlements")
    else:
        result.note(f"App group {cfg.shared_group_id} already present")
    return result
