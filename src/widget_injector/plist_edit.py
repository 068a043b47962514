"""
plist 读写与数组集合操作工具。

设计原则：
- 仅在需要写入时按需创建目标数组。
- 写回统一使用 XML 格式，便于版本管理与人工审阅。
"""

from __future__ import annotations

import plistlib
from typing import Any


def load_plist(path: str) -> Any:
    """从磁盘读取 plist（自动识别 XML/Binary）并返回对象。"""
    with open(path, "rb") as f:
        return plistlib.load(f)


def save_plist_xml(path: str, obj: Any) -> None:
    """将对象以 XML plist 格式写回磁盘。"""
    data = plistlib.dumps(obj, fmt=plistlib.FMT_XML, sort_keys=False)
    with open(path, "wb") as f:
        f.write(data)


def get_or_create_array(root: dict, key: str) -> list:
    """获取或创建 `root[key]` 数组节点，不是数组时抛出类型错误。"""
    if not isinstance(root, dict):
        raise TypeError("dict key used on non-dict container")
    if key not in root or root[key] is None:
        root[key] = []
    if not isinstance(root[key], list):
        raise TypeError(f"target is not an array: {key}")
    return root[key]


def array_add_unique(root: dict, key: str, value: str) -> bool:
    """
    以集合语义向数组加入字符串，返回是否发生了修改。

    已存在的重复项会被折叠为一个（保留首次出现的位置）。
    """
    arr = get_or_create_array(root, key)
    before = list(arr)
    seen = False
    out = []
    for item in arr:
        if item == value:
            if seen:
                continue
            seen = True
        out.append(item)
    if not seen:
        out.append(value)
    arr[:] = out
    return arr != before
