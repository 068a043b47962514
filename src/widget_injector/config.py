"""
小组件扩展注入的配置结构与配置文件加载。

所有固定常量（目标名、App Group、主应用 bundle id、Team ID、部署版本以及
构建设置表）集中在 `WidgetConfig` 中，由调用方显式传入流水线。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any

from .plist_edit import load_plist


APP_GROUPS_KEY = "com.apple.security.application-groups"
WIDGETKIT_EXTENSION_POINT = "com.apple.widgetkit-extension"

# 构建设置中引用的 color set 名称，`colors` 必须同时包含两者。
ACCENT_COLOR_NAME = "AccentColor"
WIDGET_BACKGROUND_COLOR_NAME = "WidgetBackground"


@dataclass(frozen=True)
class ColorSpec:
    """资源目录中的一个 color set（sRGB 分量，取值 0..1 的字符串）。"""

    name: str
    red: str
    green: str
    blue: str
    alpha: str = "1.000"

    @classmethod
    def from_hex(cls, name: str, value: str) -> "ColorSpec":
        """从 `#rrggbb` 或 `#rrggbbaa` 构造。"""
        s = value.strip().lstrip("#")
        if not re.fullmatch(r"[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?", s):
            raise ValueError(f"invalid hex color for {name}: {value}")
        parts = [int(s[i:i + 2], 16) / 255 for i in range(0, len(s), 2)]
        if len(parts) == 3:
            parts.append(1.0)
        red, green, blue, alpha = (f"{p:.3f}" for p in parts)
        return cls(name=name, red=red, green=green, blue=blue, alpha=alpha)


DEFAULT_COLORS = (
    ColorSpec("AccentColor", "0.984", "0.749", "0.141"),
    ColorSpec("WidgetBackground", "0.102", "0.102", "0.180"),
)


@dataclass(frozen=True)
class WidgetConfig:
    """一次流水线运行所需的全部配置输入。"""

    target_name: str = "StackTrackerWidget"
    shared_group_id: str = "group.com.stacktrackerpro.shared"
    host_bundle_id: str = "com.stacktrackerpro.app"
    team_id: str = "3BKELS5FG9"
    deployment_target: str = "17.0"
    display_name: str = "Stack Tracker"
    bundle_suffix: str = ".widget"
    extension_point_id: str = WIDGETKIT_EXTENSION_POINT
    colors: tuple[ColorSpec, ...] = DEFAULT_COLORS
    widget_files: tuple[str, ...] = (
        "StackTrackerWidget.swift",
        "WidgetViews.swift",
        "WidgetData.swift",
    )
    module_files: tuple[str, ...] = ("WidgetKitModule.swift", "WidgetKitModule.m")
    # 相对主应用源码目录（`ios/<ProjectName>/`）的图标路径。
    host_icon: str = "Images.xcassets/AppIcon.appiconset/App-Icon-1024x1024@1x.png"
    register_sources: bool = False
    extra_settings: dict[str, Any] = field(default_factory=dict)

    @property
    def widget_bundle_id(self) -> str:
        return f"{self.host_bundle_id}{self.bundle_suffix}"

    @property
    def entitlements_relpath(self) -> str:
        return f"{self.target_name}/{self.target_name}.entitlements"


def build_settings(cfg: WidgetConfig) -> dict[str, Any]:
    """渲染扩展目标每个构建配置需要覆盖的设置表。"""
    settings: dict[str, Any] = {
        "DEVELOPMENT_TEAM": cfg.team_id,
        "CODE_SIGN_STYLE": "Automatic",
        "SWIFT_VERSION": "5.0",
        "IPHONEOS_DEPLOYMENT_TARGET": cfg.deployment_target,
        "TARGETED_DEVICE_FAMILY": "1,2",
        "CODE_SIGN_ENTITLEMENTS": cfg.entitlements_relpath,
        "ASSETCATALOG_COMPILER_GLOBAL_ACCENT_COLOR_NAME": ACCENT_COLOR_NAME,
        "ASSETCATALOG_COMPILER_WIDGET_BACKGROUND_COLOR_NAME": WIDGET_BACKGROUND_COLOR_NAME,
        "GENERATE_INFOPLIST_FILE": "YES",
        "INFOPLIST_KEY_CFBundleDisplayName": cfg.display_name,
        "INFOPLIST_KEY_NSHumanReadableCopyright": "",
        "MARKETING_VERSION": "1.0",
        "CURRENT_PROJECT_VERSION": "1",
        "INFOPLIST_FILE": f"{cfg.target_name}/Info.plist",
        "LD_RUNPATH_SEARCH_PATHS": (
            "$(inherited) @executable_path/Frameworks @executable_path/../../Frameworks"
        ),
        "PRODUCT_NAME": "$(TARGET_NAME)",
        "SKIP_INSTALL": "YES",
        "SWIFT_EMIT_LOC_STRINGS": "YES",
        "PRODUCT_BUNDLE_IDENTIFIER": cfg.widget_bundle_id,
    }
    settings.update(cfg.extra_settings)
    return settings


# 配置文件键 -> `WidgetConfig` 字段。
_FILE_KEYS = {
    "targetName": "target_name",
    "name": "target_name",
    "appGroup": "shared_group_id",
    "bundleIdentifier": "host_bundle_id",
    "teamId": "team_id",
    "deploymentTarget": "deployment_target",
    "displayName": "display_name",
    "bundleSuffix": "bundle_suffix",
    "hostIcon": "host_icon",
    "registerSources": "register_sources",
}


def _require_str(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SystemExit(f"Error: config key {key} must be a non-empty string")
    return value.strip()


def config_from_dict(data: dict[str, Any], base: WidgetConfig | None = None) -> WidgetConfig:
    """把配置文件内容覆盖到 `base`（默认值）上。"""
    cfg = base or WidgetConfig()
    changes: dict[str, Any] = {}

    for key, value in data.items():
        if key in _FILE_KEYS:
            attr = _FILE_KEYS[key]
            if attr == "register_sources":
                if not isinstance(value, bool):
                    raise SystemExit(f"Error: config key {key} must be a bool")
                changes[attr] = value
            else:
                changes[attr] = _require_str(key, value)
        elif key == "colors":
            if not isinstance(value, dict):
                raise SystemExit("Error: config key colors must be a dict of name -> #rrggbb")
            colors = []
            for name, hex_value in value.items():
                # `$accent` 是目标配置文件里强调色的约定写法。
                color_name = ACCENT_COLOR_NAME if name == "$accent" else name
                if isinstance(hex_value, dict):
                    hex_value = hex_value.get("color", "")
                try:
                    colors.append(ColorSpec.from_hex(color_name, str(hex_value)))
                except ValueError as e:
                    raise SystemExit(f"Error: {e}") from e
            names = {c.name for c in colors}
            missing = [
                n for n in (ACCENT_COLOR_NAME, WIDGET_BACKGROUND_COLOR_NAME) if n not in names
            ]
            if missing:
                raise SystemExit(
                    f"Error: config key colors must define {', '.join(missing)} "
                    "(referenced by the widget build settings)"
                )
            changes["colors"] = tuple(colors)
        elif key == "buildSettings":
            if not isinstance(value, dict):
                raise SystemExit("Error: config key buildSettings must be a dict")
            changes["extra_settings"] = dict(value)
        elif key in ("widgetFiles", "moduleFiles"):
            if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
                raise SystemExit(f"Error: config key {key} must be an array of strings")
            attr = "widget_files" if key == "widgetFiles" else "module_files"
            changes[attr] = tuple(value)
        else:
            raise SystemExit(f"Error: unknown config key: {key}")

    return replace(cfg, **changes)


def load_config_file(path: str, base: WidgetConfig | None = None) -> WidgetConfig:
    """读取 plist 配置文件（XML/Binary）并生成 `WidgetConfig`。"""
    try:
        data = load_plist(path)
    except FileNotFoundError as e:
        raise SystemExit(f"Error: config not found: {path}") from e
    except Exception as e:
        raise SystemExit(f"Error: failed to read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise SystemExit(f"Error: config plist is not a dict: {path}")
    return config_from_dict(data, base)
