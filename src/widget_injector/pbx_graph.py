"""
`project.pbxproj` 对象图的类型化模型。

工程文件的 `objects` 表是一张以 24 位十六进制 id 为键的扁平表，节点之间通过
id 字符串相互引用。这里把它整理为 `PbxNode` + `NodeKind`，并提供按种类查询、
按 id 解析、按名称查找目标等操作；文本格式的读写由 `pbx_codec` 负责。
"""

from __future__ import annotations

import copy
import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeKind(Enum):
    TARGET = "target"
    BUILD_CONFIGURATION = "build-configuration"
    CONFIGURATION_LIST = "configuration-list"
    GROUP = "group"
    PROJECT = "project"
    OTHER = "other"


_KIND_BY_ISA = {
    "PBXNativeTarget": NodeKind.TARGET,
    "PBXAggregateTarget": NodeKind.TARGET,
    "PBXLegacyTarget": NodeKind.TARGET,
    "XCBuildConfiguration": NodeKind.BUILD_CONFIGURATION,
    "XCConfigurationList": NodeKind.CONFIGURATION_LIST,
    "PBXGroup": NodeKind.GROUP,
    "PBXVariantGroup": NodeKind.GROUP,
    "PBXProject": NodeKind.PROJECT,
}


@dataclass
class PbxNode:
    """`objects` 表中的一个节点。`fields` 不含 `isa`。"""

    id: str
    isa: str
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> NodeKind:
        return _KIND_BY_ISA.get(self.isa, NodeKind.OTHER)

    @property
    def name(self) -> str:
        v = self.fields.get("name")
        return v if isinstance(v, str) else ""

    def ref(self, key: str) -> str:
        """读取单个 id 引用；缺失或类型不对时返回空串。"""
        v = self.fields.get(key)
        return v if isinstance(v, str) else ""

    def refs(self, key: str) -> list[str]:
        v = self.fields.get(key)
        if not isinstance(v, list):
            return []
        return [x for x in v if isinstance(x, str)]

    def append_ref(self, key: str, node_id: str) -> None:
        """向 id 列表追加引用（列表不存在时创建，已存在时不重复追加）。"""
        v = self.fields.get(key)
        if not isinstance(v, list):
            v = []
            self.fields[key] = v
        if node_id not in v:
            v.append(node_id)

    def to_dict(self) -> dict[str, Any]:
        return {"isa": self.isa, **copy.deepcopy(self.fields)}


class ProjectGraph:
    """整个工程描述的内存对象图。"""

    def __init__(
        self,
        nodes: dict[str, PbxNode] | None = None,
        *,
        root_id: str = "",
        header: dict[str, Any] | None = None,
    ) -> None:
        self.nodes: dict[str, PbxNode] = dict(nodes or {})
        self.root_id = root_id
        # 顶层除 `objects` 外的键（archiveVersion/classes/objectVersion/...），保持原顺序。
        self.header: dict[str, Any] = dict(header or {})

    @classmethod
    def from_tree(cls, tree: dict[str, Any]) -> "ProjectGraph":
        """从解析后的字典树构建对象图。"""
        if not isinstance(tree, dict):
            raise ValueError("project descriptor root is not a dict")
        objects = tree.get("objects")
        if not isinstance(objects, dict):
            raise ValueError("project descriptor has no objects table")

        nodes: dict[str, PbxNode] = {}
        for key, body in objects.items():
            # 跳过注释等非节点条目。
            if not isinstance(body, dict) or not isinstance(body.get("isa"), str):
                continue
            fields = {k: v for k, v in body.items() if k != "isa"}
            nodes[key] = PbxNode(id=key, isa=body["isa"], fields=fields)

        header = {k: None if k == "objects" else copy.deepcopy(v) for k, v in tree.items()}
        root_id = tree.get("rootObject", "")
        return cls(nodes, root_id=root_id if isinstance(root_id, str) else "", header=header)

    def to_tree(self) -> dict[str, Any]:
        """导出为可序列化的字典树（与 `from_tree` 互逆）。"""
        objects = {node_id: node.to_dict() for node_id, node in self.nodes.items()}
        out: dict[str, Any] = {}
        for key, value in self.header.items():
            out[key] = objects if key == "objects" else copy.deepcopy(value)
        if "objects" not in out:
            out["objects"] = objects
        if self.root_id:
            out["rootObject"] = self.root_id
        return out

    def get(self, node_id: str) -> PbxNode | None:
        return self.nodes.get(node_id) if node_id else None

    def resolve(self, node_id: str, kind: NodeKind) -> PbxNode | None:
        """按 id 解析节点，并要求其种类匹配。"""
        node = self.get(node_id)
        if node is None or node.kind != kind:
            return None
        return node

    def nodes_of(self, kind: NodeKind) -> list[PbxNode]:
        return [n for n in self.nodes.values() if n.kind == kind]

    def targets(self) -> list[PbxNode]:
        return self.nodes_of(NodeKind.TARGET)

    def find_target(self, name: str) -> PbxNode | None:
        for node in self.targets():
            if node.name == name:
                return node
        return None

    @property
    def project(self) -> PbxNode | None:
        return self.resolve(self.root_id, NodeKind.PROJECT)

    def project_targets(self) -> list[PbxNode]:
        """根工程 `targets` 列表中可解析的目标，保持工程内顺序。"""
        project = self.project
        if project is None:
            return self.targets()
        out = []
        for node_id in project.refs("targets"):
            node = self.resolve(node_id, NodeKind.TARGET)
            if node is not None:
                out.append(node)
        return out

    def host_target(self) -> PbxNode | None:
        """主应用目标：第一个产品类型为 application 的目标。"""
        for node in self.project_targets():
            if node.fields.get("productType") == "com.apple.product-type.application":
                return node
        return None

    def add(self, node: PbxNode) -> PbxNode:
        if node.id in self.nodes:
            raise ValueError(f"duplicate object id: {node.id}")
        self.nodes[node.id] = node
        return node

    def new_id(self, seed: str) -> str:
        """由种子派生稳定的 24 位 id；冲突时追加序号重新派生。"""
        n = 0
        while True:
            raw = seed if n == 0 else f"{seed}#{n}"
            node_id = hashlib.md5(raw.encode("utf-8")).hexdigest()[:24].upper()
            if node_id not in self.nodes:
                return node_id
            n += 1

    def create(self, isa: str, seed: str, **fields: Any) -> PbxNode:
        return self.add(PbxNode(id=self.new_id(seed), isa=isa, fields=fields))
