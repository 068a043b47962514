"""
用于在生成的原生工程目录（`ios/`）中定位各类路径。
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .config import WidgetConfig


@dataclass(frozen=True)
class ProjectLayout:
    """一次运行涉及的全部磁盘路径。"""

    project_root: str
    ios_dir: str
    project_name: str
    xcodeproj_dir: str

    @property
    def pbxproj_path(self) -> str:
        return os.path.join(self.xcodeproj_dir, "project.pbxproj")

    @property
    def host_source_dir(self) -> str:
        return os.path.join(self.ios_dir, self.project_name)

    @property
    def host_entitlements_path(self) -> str:
        return os.path.join(self.host_source_dir, f"{self.project_name}.entitlements")

    def extension_dir(self, cfg: WidgetConfig) -> str:
        return os.path.join(self.ios_dir, cfg.target_name)

    def host_icon_path(self, cfg: WidgetConfig) -> str:
        return os.path.join(self.host_source_dir, *cfg.host_icon.split("/"))


def find_xcodeproj(ios_dir: str, project_name: str = "") -> str:
    """在 `ios/` 目录定位 `.xcodeproj`，支持指定名称并处理歧义。"""
    projects: list[str] = []
    for name in sorted(os.listdir(ios_dir)):
        p = os.path.join(ios_dir, name)
        if os.path.isdir(p) and name.endswith(".xcodeproj"):
            # `Pods.xcodeproj` 位于 `Pods/` 下，这里只看顶层。
            projects.append(p)

    if not projects:
        return ""

    if project_name:
        raw = os.path.basename(project_name.strip())
        target = raw if raw.endswith(".xcodeproj") else f"{raw}.xcodeproj"
        for proj in projects:
            if os.path.basename(proj) == target:
                return proj
        found = ", ".join(os.path.basename(x) for x in projects)
        raise SystemExit(
            f"Error: project not found: {target}. Available under ios/: {found}"
        )

    if len(projects) == 1:
        return projects[0]

    found = ", ".join(os.path.basename(x) for x in projects)
    raise SystemExit(
        "Error: multiple .xcodeproj found under ios/. "
        f"Please specify --project-name. Available: {found}"
    )


def resolve_layout(project_root: str, project_name: str = "") -> ProjectLayout:
    """根据工程根目录解析出 `ProjectLayout`。"""
    root = os.path.abspath(project_root)
    ios_dir = os.path.join(root, "ios")
    if not os.path.isdir(ios_dir):
        raise SystemExit(
            f"Error: ios/ not found under {root}.\n"
            "Hint: generate the native project first (e.g. expo prebuild).\n"
        )

    xcodeproj = find_xcodeproj(ios_dir, project_name)
    if not xcodeproj:
        raise SystemExit(f"Error: .xcodeproj not found under {ios_dir}")

    name = os.path.basename(xcodeproj)[: -len(".xcodeproj")]
    return ProjectLayout(
        project_root=root,
        ios_dir=ios_dir,
        project_name=name,
        xcodeproj_dir=xcodeproj,
    )
