"""
在工程对象图中注入小组件扩展目标并覆盖其构建设置。

状态流转：
    TARGET_ABSENT -> TARGET_CREATED -> CONFIG_LIST_RESOLVED -> SETTINGS_APPLIED
    TARGET_ABSENT -> ALREADY_EXISTS（终态，不做修改）
任一步失败进入 FAILED，异常只在本阶段内捕获并记录，不向调用方抛出。

配置列表的解析有两条路径：
- primary：直接使用创建目标时返回的配置列表 id；
- fallback：primary 缺失或无法解析时，按名称重新扫描全部目标节点。

源码文件注册（把 Swift 文件加入扩展的 Sources 阶段）默认关闭，
需通过 `WidgetConfig.register_sources` 显式开启。
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import WidgetConfig, build_settings
from .pbx_graph import NodeKind, PbxNode, ProjectGraph
from .types import Outcome, StageResult

STAGE = "project"

PRODUCT_TYPE_APP_EXTENSION = "com.apple.product-type.app-extension"
# `dstSubfolderSpec = 13` 对应 PlugIns 目录。
_PLUGINS_SUBFOLDER = "13"
_BUILD_ACTION_MASK = "2147483647"


class PatchState(Enum):
    TARGET_ABSENT = "target-absent"
    ALREADY_EXISTS = "already-exists"
    TARGET_CREATED = "target-created"
    CONFIG_LIST_RESOLVED = "config-list-resolved"
    SETTINGS_APPLIED = "settings-applied"
    FAILED = "failed"


@dataclass(frozen=True)
class CreatedTarget:
    """创建目标后返回的句柄。"""

    target_id: str
    config_list_id: str
    group_id: str = ""
    sources_phase_id: str = ""
    resources_phase_id: str = ""


def _configuration_names(graph: ProjectGraph) -> list[str]:
    """沿用根工程的配置名（通常为 Debug/Release）。"""
    project = graph.project
    if project is not None:
        lst = graph.resolve(project.ref("buildConfigurationList"), NodeKind.CONFIGURATION_LIST)
        if lst is not None:
            names = []
            for cid in lst.refs("buildConfigurations"):
                node = graph.resolve(cid, NodeKind.BUILD_CONFIGURATION)
                if node is not None and node.name:
                    names.append(node.name)
            if names:
                return names
    return ["Debug", "Release"]


def _phase(graph: ProjectGraph, isa: str, seed: str, **extra: Any) -> PbxNode:
    return graph.create(
        isa,
        seed,
        buildActionMask=_BUILD_ACTION_MASK,
        files=[],
        **extra,
        runOnlyForDeploymentPostprocessing="0",
    )


def _embed_in_host(graph: ProjectGraph, host: PbxNode, product: PbxNode, target: PbxNode) -> None:
    """把扩展产物嵌入主应用，并建立主应用对扩展的目标依赖。"""
    name = target.name
    embed_phase: PbxNode | None = None
    for phase_id in host.refs("buildPhases"):
        phase = graph.get(phase_id)
        if (
            phase is not None
            and phase.isa == "PBXCopyFilesBuildPhase"
            and phase.fields.get("dstSubfolderSpec") == _PLUGINS_SUBFOLDER
        ):
            embed_phase = phase
            break
    if embed_phase is None:
        embed_phase = _phase(
            graph,
            "PBXCopyFilesBuildPhase",
            f"{host.id}:embed-extensions",
            dstPath="",
            dstSubfolderSpec=_PLUGINS_SUBFOLDER,
            name="Embed Foundation Extensions",
        )
        host.append_ref("buildPhases", embed_phase.id)

    build_file = graph.create(
        "PBXBuildFile",
        f"{name}:embed",
        fileRef=product.id,
        settings={"ATTRIBUTES": ["RemoveHeadersOnCopy"]},
    )
    embed_phase.append_ref("files", build_file.id)

    proxy = graph.create(
        "PBXContainerItemProxy",
        f"{name}:proxy",
        containerPortal=graph.root_id,
        proxyType="1",
        remoteGlobalIDString=target.id,
        remoteInfo=name,
    )
    dependency = graph.create(
        "PBXTargetDependency",
        f"{name}:dependency",
        target=target.id,
        targetProxy=proxy.id,
    )
    host.append_ref("dependencies", dependency.id)


def create_extension_target(graph: ProjectGraph, cfg: WidgetConfig) -> CreatedTarget:
    """创建扩展目标及其配置列表、构建阶段、产物引用与分组。"""
    name = cfg.target_name
    project = graph.project
    if project is None:
        raise ValueError("root PBXProject object not found")

    config_ids = []
    for config_name in _configuration_names(graph):
        node = graph.create(
            "XCBuildConfiguration",
            f"{name}:config:{config_name}",
            buildSettings={
                "PRODUCT_BUNDLE_IDENTIFIER": cfg.widget_bundle_id,
                "PRODUCT_NAME": "$(TARGET_NAME)",
            },
            name=config_name,
        )
        config_ids.append(node.id)

    config_list = graph.create(
        "XCConfigurationList",
        f"{name}:config-list",
        buildConfigurations=config_ids,
        defaultConfigurationIsVisible="0",
        defaultConfigurationName="Release",
    )

    product = graph.create(
        "PBXFileReference",
        f"{name}:product",
        explicitFileType="wrapper.app-extension",
        includeInIndex="0",
        path=f"{name}.appex",
        sourceTree="BUILT_PRODUCTS_DIR",
    )
    products_group = graph.resolve(project.ref("productRefGroup"), NodeKind.GROUP)
    if products_group is not None:
        products_group.append_ref("children", product.id)

    sources = _phase(graph, "PBXSourcesBuildPhase", f"{name}:sources")
    frameworks = _phase(graph, "PBXFrameworksBuildPhase", f"{name}:frameworks")
    resources = _phase(graph, "PBXResourcesBuildPhase", f"{name}:resources")

    target = graph.create(
        "PBXNativeTarget",
        f"{name}:target",
        buildConfigurationList=config_list.id,
        buildPhases=[sources.id, frameworks.id, resources.id],
        buildRules=[],
        dependencies=[],
        name=name,
        productName=name,
        productReference=product.id,
        productType=PRODUCT_TYPE_APP_EXTENSION,
    )
    project.append_ref("targets", target.id)

    group = graph.create(
        "PBXGroup",
        f"{name}:group",
        children=[],
        path=name,
        sourceTree="<group>",
    )
    main_group = graph.resolve(project.ref("mainGroup"), NodeKind.GROUP)
    if main_group is not None:
        main_group.append_ref("children", group.id)

    host = graph.host_target()
    if host is not None:
        _embed_in_host(graph, host, product, target)

    return CreatedTarget(
        target_id=target.id,
        config_list_id=config_list.id,
        group_id=group.id,
        sources_phase_id=sources.id,
        resources_phase_id=resources.id,
    )


def register_sources(graph: ProjectGraph, created: CreatedTarget, cfg: WidgetConfig) -> int:
    """把扩展源码与资源目录登记到扩展目标，返回登记的文件数。"""
    group = graph.resolve(created.group_id, NodeKind.GROUP)
    sources = graph.get(created.sources_phase_id)
    resources = graph.get(created.resources_phase_id)
    if group is None or sources is None or resources is None:
        raise ValueError("created target handle is missing group or build phases")

    entries = [(f, "sourcecode.swift", sources) for f in cfg.widget_files]
    entries.append(("Assets.xcassets", "folder.assetcatalog", resources))
    for filename, file_type, phase in entries:
        ref = graph.create(
            "PBXFileReference",
            f"{cfg.target_name}:file:{filename}",
            lastKnownFileType=file_type,
            path=filename,
            sourceTree="<group>",
        )
        group.append_ref("children", ref.id)
        build_file = graph.create(
            "PBXBuildFile",
            f"{cfg.target_name}:build:{filename}",
            fileRef=ref.id,
        )
        phase.append_ref("files", build_file.id)
    return len(entries)


def resolve_config_list(
    graph: ProjectGraph,
    created: CreatedTarget | None,
    target_name: str,
) -> tuple[PbxNode | None, str]:
    """解析目标的配置列表，返回 `(节点, "primary"|"fallback")`；失败返回 `(None, "")`。"""
    if created is not None and created.config_list_id:
        node = graph.resolve(created.config_list_id, NodeKind.CONFIGURATION_LIST)
        if node is not None:
            return node, "primary"

    for target in graph.targets():
        if target.name != target_name:
            continue
        node = graph.resolve(target.ref("buildConfigurationList"), NodeKind.CONFIGURATION_LIST)
        if node is not None:
            return node, "fallback"
    return None, ""


def apply_build_settings(
    graph: ProjectGraph,
    config_list: PbxNode,
    settings: dict[str, Any],
) -> list[str]:
    """对配置列表引用的每个构建配置覆盖写入设置，返回已处理的配置名。"""
    patched: list[str] = []
    for cid in config_list.refs("buildConfigurations"):
        node = graph.resolve(cid, NodeKind.BUILD_CONFIGURATION)
        if node is None:
            continue
        bs = node.fields.get("buildSettings")
        if not isinstance(bs, dict):
            bs = {}
            node.fields["buildSettings"] = bs
        for key, value in settings.items():
            bs[key] = list(value) if isinstance(value, (list, tuple)) else value
        patched.append(node.name or cid)
    return patched


def patch_project(graph: ProjectGraph, cfg: WidgetConfig) -> StageResult:
    """流水线第 4 阶段：创建扩展目标并写入构建设置。"""
    result = StageResult(STAGE)
    result.details["state"] = PatchState.TARGET_ABSENT
    result.details["mutated"] = False

    if graph.find_target(cfg.target_name) is not None:
        result.outcome = Outcome.NOOP
        result.details["state"] = PatchState.ALREADY_EXISTS
        result.note("Widget target already exists")
        return result

    try:
        created = create_extension_target(graph, cfg)
    except Exception as e:
        result.details["state"] = PatchState.FAILED
        result.fail(f"Widget target creation failed: {e}", traceback.format_exc())
        return result
    if created is None or not created.target_id:
        result.details["state"] = PatchState.FAILED
        result.fail("Widget target creation returned no target")
        return result

    result.details["state"] = PatchState.TARGET_CREATED
    result.details["mutated"] = True
    result.details["target_id"] = created.target_id
    result.note("Added widget target to Xcode project")

    config_list, resolution = resolve_config_list(graph, created, cfg.target_name)
    if config_list is None:
        result.details["state"] = PatchState.FAILED
        result.fail(
            f"Build configuration list not found for target {cfg.target_name}; "
            "build settings not applied"
        )
        return result
    result.details["state"] = PatchState.CONFIG_LIST_RESOLVED
    result.details["resolution"] = resolution
    if resolution == "fallback":
        result.note("Resolved build configuration list by target name")

    try:
        if cfg.register_sources:
            count = register_sources(graph, created, cfg)
            result.note(f"Registered {count} files with widget target")
        patched = apply_build_settings(graph, config_list, build_settings(cfg))
    except Exception as e:
        result.details["state"] = PatchState.FAILED
        result.fail(f"Failed to apply widget build settings: {e}", traceback.format_exc())
        return result

    result.details["state"] = PatchState.SETTINGS_APPLIED
    result.details["configurations"] = patched
    result.note(f"Applied widget build settings to: {', '.join(patched) or '(none)'}")
    return result
