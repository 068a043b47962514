"""
`project.pbxproj` 文本格式与 `ProjectGraph` 之间的适配层。

- 读取：`openstep_parser` 把 OpenStep plist 文本解析为字典树。
- 写回：交给 `pbxproj.XcodeProject` 序列化，它会补全分区标记与对象注释。
"""

from __future__ import annotations

import openstep_parser as osp
from pbxproj import XcodeProject

from .pbx_graph import ProjectGraph


def parse_project_text(text: str) -> ProjectGraph:
    """把工程文件文本解析为对象图。"""
    return ProjectGraph.from_tree(osp.OpenStepDecoder.ParseFromString(text))


def load_project(path: str) -> ProjectGraph:
    """从磁盘读取工程文件。"""
    with open(path, "r", encoding="utf-8") as f:
        tree = osp.OpenStepDecoder.ParseFromFile(f)
    return ProjectGraph.from_tree(tree)


def save_project(graph: ProjectGraph, path: str) -> None:
    """将对象图按 Xcode 文本格式写回 `path`。"""
    XcodeProject(graph.to_tree(), path).save(path)
