"""
`widget-injector` 的命令行入口模块。

负责收集工程路径与配置参数，并调用 `widget_injector.pipeline.run_pipeline`。
"""

import argparse
import os
from collections.abc import Sequence
from dataclasses import replace

from .config import WidgetConfig, load_config_file
from .inspect import describe_project, print_project_info
from .layout import resolve_layout
from .pbx_codec import load_project
from .pipeline import run_pipeline
from .types import log_step


def build_parser() -> argparse.ArgumentParser:
    """构建并返回 `widget-injector` 命令行参数解析器。"""
    p = argparse.ArgumentParser(
        prog="widget-injector",
        formatter_class=argparse.RawTextHelpFormatter,
        description=(
            "Inject a home-screen widget extension into a generated iOS project.\n"
            "Merges the app group entitlement, writes the extension files, copies the\n"
            "WidgetKit bridge module and patches project.pbxproj. Safe to re-run."
        ),
    )
    p.add_argument(
        "-r",
        "--project-root",
        default="",
        help="App project root containing ios/ (default: current directory)",
    )
    p.add_argument(
        "--project-name",
        default="",
        help="Xcode project name under ios/ (e.g. MyApp) when multiple .xcodeproj exist",
    )
    p.add_argument(
        "--templates",
        default="",
        help="Template directory (default: <root>/plugins/ios-widget/widget-files)",
    )
    p.add_argument("-c", "--config", default="", help="Widget config plist (optional)")
    p.add_argument("--target-name", default="", help="Widget extension target name")
    p.add_argument("--app-group", default="", help="Shared app group identifier")
    p.add_argument("-b", "--bundle-id", default="", help="Host app CFBundleIdentifier")
    p.add_argument("--team-id", default="", help="Apple development team id")
    p.add_argument("--deployment-target", default="", help="Widget IPHONEOS_DEPLOYMENT_TARGET")
    p.add_argument("--display-name", default="", help="Widget display name")
    p.add_argument(
        "--register-sources",
        action="store_true",
        help="Also register widget Swift files and assets with the new target",
    )
    p.add_argument(
        "--inspect",
        action="store_true",
        help="Only print project targets and configurations without modifying anything",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any stage reports a soft failure",
    )
    p.add_argument("--verbose", action="store_true", help="Print all stage diagnostics at the end")
    return p


def _resolve_config(ns: argparse.Namespace) -> WidgetConfig:
    """合并配置文件与命令行覆盖项。"""
    cfg = WidgetConfig()
    if ns.config:
        cfg = load_config_file(os.path.abspath(os.path.expanduser(ns.config)), cfg)

    overrides = {
        "target_name": ns.target_name,
        "shared_group_id": ns.app_group,
        "host_bundle_id": ns.bundle_id,
        "team_id": ns.team_id,
        "deployment_target": ns.deployment_target,
        "display_name": ns.display_name,
    }
    changes = {k: v.strip() for k, v in overrides.items() if v and v.strip()}
    if ns.register_sources:
        changes["register_sources"] = True
    return replace(cfg, **changes) if changes else cfg


def main(argv: Sequence[str] | None = None) -> int:
    """CLI 入口：解析参数、校验输入并调用注入主流程。"""
    parser = build_parser()
    ns = parser.parse_args(argv)
    if ns.inspect and ns.register_sources:
        raise SystemExit("Error: --inspect and --register-sources cannot be used together.")

    root = os.path.abspath(os.path.expanduser(ns.project_root or os.getcwd()))
    templates = os.path.abspath(os.path.expanduser(ns.templates)) if ns.templates else ""

    if ns.inspect:
        layout = resolve_layout(root, ns.project_name)
        log_step(f"Inspecting {layout.pbxproj_path}")
        try:
            graph = load_project(layout.pbxproj_path)
        except (OSError, ValueError) as e:
            raise SystemExit(f"Error: failed to read project: {e}") from e
        print_project_info(layout.pbxproj_path, describe_project(graph))
        return 0

    cfg = _resolve_config(ns)
    log_step(f"Widget target: {cfg.target_name} ({cfg.widget_bundle_id})")
    report = run_pipeline(root, cfg, templates_dir=templates, project_name=ns.project_name)

    if ns.verbose:
        for result in report.stages:
            for line in result.diagnostics:
                print(f"  [{result.stage}] {line.rstrip()}")

    if ns.strict and report.has_failures:
        return 1
    return 0
