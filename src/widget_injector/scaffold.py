"""
小组件扩展目录生成。

生成内容：
- 源码占位文件（从模板目录原样复制）。
- 扩展签名权限与 `Info.plist`。
- `Assets.xcassets`：每个品牌色一个 color set，外加由主应用图标派生的 icon set。

目录按需创建，文件每次无条件覆盖；中途失败不回滚，下次构建重新运行即可。
"""

from __future__ import annotations

import json
import os
import shutil
import traceback
from typing import Any

from .config import ColorSpec, WidgetConfig
from .entitlements import extension_entitlements
from .plist_edit import save_plist_xml
from .types import StageResult

STAGE = "scaffold"

_XCODE_INFO = {"author": "xcode", "version": 1}


def _ensure_dir(path: str) -> None:
    if not os.path.isdir(path):
        os.makedirs(path)


def _write_json(path: str, obj: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2)
        f.write("\n")


def extension_info_plist(cfg: WidgetConfig) -> dict:
    """扩展的 `Info.plist` 内容；标识类字段保留构建变量占位。"""
    return {
        "CFBundleDevelopmentRegion": "$(DEVELOPMENT_LANGUAGE)",
        "CFBundleDisplayName": cfg.display_name,
        "CFBundleExecutable": "$(EXECUTABLE_NAME)",
        "CFBundleIdentifier": "$(PRODUCT_BUNDLE_IDENTIFIER)",
        "CFBundleInfoDictionaryVersion": "6.0",
        "CFBundleName": "$(PRODUCT_NAME)",
        "CFBundlePackageType": "$(PRODUCT_BUNDLE_PACKAGE_TYPE)",
        "CFBundleShortVersionString": "$(MARKETING_VERSION)",
        "CFBundleVersion": "$(CURRENT_PROJECT_VERSION)",
        "NSExtension": {"NSExtensionPointIdentifier": cfg.extension_point_id},
    }


def colorset_contents(color: ColorSpec) -> dict:
    return {
        "colors": [
            {
                "color": {
                    "color-space": "srgb",
                    "components": {
                        "red": color.red,
                        "green": color.green,
                        "blue": color.blue,
                        "alpha": color.alpha,
                    },
                },
                "idiom": "universal",
            }
        ],
        "info": dict(_XCODE_INFO),
    }


def iconset_contents(filename: str) -> dict:
    return {
        "images": [
            {
                "filename": filename,
                "idiom": "universal",
                "platform": "ios",
                "size": "1024x1024",
            }
        ],
        "info": dict(_XCODE_INFO),
    }


def write_asset_catalog(assets_dir: str, cfg: WidgetConfig, host_icon: str) -> bool:
    """写出资源目录，返回是否生成了 icon set。"""
    _ensure_dir(assets_dir)
    _write_json(os.path.join(assets_dir, "Contents.json"), {"info": dict(_XCODE_INFO)})

    for color in cfg.colors:
        color_dir = os.path.join(assets_dir, f"{color.name}.colorset")
        _ensure_dir(color_dir)
        _write_json(os.path.join(color_dir, "Contents.json"), colorset_contents(color))

    if not host_icon or not os.path.isfile(host_icon):
        return False

    icon_dir = os.path.join(assets_dir, "AppIcon.appiconset")
    _ensure_dir(icon_dir)
    filename = os.path.basename(host_icon)
    shutil.copyfile(host_icon, os.path.join(icon_dir, filename))
    _write_json(os.path.join(icon_dir, "Contents.json"), iconset_contents(filename))
    return True


def copy_templates(
    names: tuple[str, ...] | list[str],
    *,
    templates_dir: str,
    dest_dir: str,
    result: StageResult,
    label: str,
) -> list[str]:
    """逐个复制模板文件；源文件缺失时记录并跳过。返回已复制的文件名。"""
    copied: list[str] = []
    for name in names:
        src = os.path.join(templates_dir, name)
        if not os.path.isfile(src):
            result.skip(f"Template not found, skipped: {src}")
            continue
        shutil.copyfile(src, os.path.join(dest_dir, name))
        copied.append(name)
        result.note(f"Copied {name} to {label}")
    return copied


def scaffold_extension(
    extension_dir: str,
    cfg: WidgetConfig,
    *,
    templates_dir: str,
    host_icon: str,
    result: StageResult,
) -> None:
    _ensure_dir(extension_dir)

    result.details["sources"] = copy_templates(
        cfg.widget_files,
        templates_dir=templates_dir,
        dest_dir=extension_dir,
        result=result,
        label="widget extension",
    )

    save_plist_xml(
        os.path.join(extension_dir, f"{cfg.target_name}.entitlements"),
        extension_entitlements(cfg.shared_group_id),
    )
    save_plist_xml(os.path.join(extension_dir, "Info.plist"), extension_info_plist(cfg))

    has_icon = write_asset_catalog(
        os.path.join(extension_dir, "Assets.xcassets"), cfg, host_icon
    )
    result.details["icon"] = has_icon
    if not has_icon:
        # 图标缺失不影响阶段结果。
        result.note(f"Host icon not found, icon set skipped: {host_icon}")


def run_scaffolder(
    extension_dir: str,
    cfg: WidgetConfig,
    *,
    templates_dir: str,
    host_icon: str,
) -> StageResult:
    """流水线第 2 阶段：生成扩展目录树。"""
    result = StageResult(STAGE)
    try:
        scaffold_extension(
            extension_dir,
            cfg,
            templates_dir=templates_dir,
            host_icon=host_icon,
            result=result,
        )
    except Exception as e:
        result.fail(
            f"Failed to scaffold widget extension at {extension_dir}: {e}",
            traceback.format_exc(),
        )
        return result

    result.note("Widget extension files created")
    return result
