"""
工程文件只读信息查看模块。

用于在不修改任何文件的情况下，快速查看各目标及其构建配置。
"""

from __future__ import annotations

from dataclasses import dataclass

from .pbx_graph import NodeKind, ProjectGraph


@dataclass(frozen=True)
class TargetInfo:
    """单个目标的关键信息。"""

    name: str
    product_type: str
    configurations: list[str]
    bundle_ids: list[str]
    # 配置列表引用缺失或无法解析时为 False。
    has_config_list: bool


def describe_project(graph: ProjectGraph) -> list[TargetInfo]:
    out: list[TargetInfo] = []
    for target in graph.project_targets():
        lst = graph.resolve(target.ref("buildConfigurationList"), NodeKind.CONFIGURATION_LIST)
        names: list[str] = []
        bundle_ids: list[str] = []
        if lst is not None:
            for cid in lst.refs("buildConfigurations"):
                node = graph.resolve(cid, NodeKind.BUILD_CONFIGURATION)
                if node is None:
                    continue
                names.append(node.name)
                bs = node.fields.get("buildSettings")
                bid = bs.get("PRODUCT_BUNDLE_IDENTIFIER") if isinstance(bs, dict) else None
                if isinstance(bid, str) and bid not in bundle_ids:
                    bundle_ids.append(bid)
        product_type = target.fields.get("productType")
        out.append(
            TargetInfo(
                name=target.name,
                product_type=product_type if isinstance(product_type, str) else "",
                configurations=names,
                bundle_ids=bundle_ids,
                has_config_list=lst is not None,
            )
        )
    return out


def print_project_info(pbxproj_path: str, targets: list[TargetInfo]) -> None:
    print("Project:")
    print(f"  Path    : {pbxproj_path}")
    print(f"  Targets : {len(targets)}")
    for t in targets:
        print(f"  - {t.name}")
        print(f"      Type    : {t.product_type or '-'}")
        if t.has_config_list:
            print(f"      Configs : {', '.join(t.configurations) or '-'}")
        else:
            print("      Configs : (configuration list missing)")
        print(f"      BundleID: {', '.join(t.bundle_ids) or '-'}")
