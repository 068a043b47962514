from pathlib import Path

import pytest

from widget_injector.pbx_graph import ProjectGraph

APP_TARGET = "13B07F861A680F5B00A75B9A"
APP_CONFIG_LIST = "13B07F931A680F5B00A75B9A"
PROJECT = "83CBB9F71A601CBA00E9B192"
MAIN_GROUP = "83CBB9F61A601CBA00E9B192"
PRODUCTS_GROUP = "83CBBA001A601CBA00E9B192"

PBXPROJ_TEXT = """// !$*UTF8*$!
{
	archiveVersion = 1;
	classes = {
	};
	objectVersion = 54;
	objects = {

/* Begin PBXBuildFile section */
		13B07FBC1A68108700A75B9A /* AppDelegate.mm in Sources */ = {isa = PBXBuildFile; fileRef = 13B07FB01A68108700A75B9A /* AppDelegate.mm */; };
/* End PBXBuildFile section */

/* Begin PBXFileReference section */
		13B07F961A680F5B00A75B9A /* DemoApp.app */ = {isa = PBXFileReference; explicitFileType = wrapper.application; includeInIndex = 0; path = DemoApp.app; sourceTree = BUILT_PRODUCTS_DIR; };
		13B07FB01A68108700A75B9A /* AppDelegate.mm */ = {isa = PBXFileReference; fileEncoding = 4; lastKnownFileType = sourcecode.cpp.objcpp; name = AppDelegate.mm; path = DemoApp/AppDelegate.mm; sourceTree = "<group>"; };
/* End PBXFileReference section */

/* Begin PBXFrameworksBuildPhase section */
		13B07F8C1A680F5B00A75B9A /* Frameworks */ = {
			isa = PBXFrameworksBuildPhase;
			buildActionMask = 2147483647;
			files = (
			);
			runOnlyForDeploymentPostprocessing = 0;
		};
/* End PBXFrameworksBuildPhase section */

/* Begin PBXGroup section */
		13B07FAE1A68108700A75B9A /* DemoApp */ = {
			isa = PBXGroup;
			children = (
				13B07FB01A68108700A75B9A /* AppDelegate.mm */,
			);
			name = DemoApp;
			sourceTree = "<group>";
		};
		83CBB9F61A601CBA00E9B192 = {
			isa = PBXGroup;
			children = (
				13B07FAE1A68108700A75B9A /* DemoApp */,
				83CBBA001A601CBA00E9B192 /* Products */,
			);
			indentWidth = 2;
			sourceTree = "<group>";
			tabWidth = 2;
			usesTabs = 0;
		};
		83CBBA001A601CBA00E9B192 /* Products */ = {
			isa = PBXGroup;
			children = (
				13B07F961A680F5B00A75B9A /* DemoApp.app */,
			);
			name = Products;
			sourceTree = "<group>";
		};
/* End PBXGroup section */

/* Begin PBXNativeTarget section */
		13B07F861A680F5B00A75B9A /* DemoApp */ = {
			isa = PBXNativeTarget;
			buildConfigurationList = 13B07F931A680F5B00A75B9A /* Build configuration list for PBXNativeTarget "DemoApp" */;
			buildPhases = (
				13B07F871A680F5B00A75B9A /* Sources */,
				13B07F8C1A680F5B00A75B9A /* Frameworks */,
				13B07F8E1A680F5B00A75B9A /* Resources */,
			);
			buildRules = (
			);
			dependencies = (
			);
			name = DemoApp;
			productName = DemoApp;
			productReference = 13B07F961A680F5B00A75B9A /* DemoApp.app */;
			productType = "com.apple.product-type.application";
		};
/* End PBXNativeTarget section */

/* Begin PBXProject section */
		83CBB9F71A601CBA00E9B192 /* Project object */ = {
			isa = PBXProject;
			attributes = {
				LastUpgradeCheck = 1130;
				TargetAttributes = {
					13B07F861A680F5B00A75B9A = {
						LastSwiftMigration = 1250;
					};
				};
			};
			buildConfigurationList = 83CBB9FA1A601CBA00E9B192 /* Build configuration list for PBXProject "DemoApp" */;
			compatibilityVersion = "Xcode 12.0";
			developmentRegion = en;
			hasScannedForEncodings = 0;
			knownRegions = (
				en,
				Base,
			);
			mainGroup = 83CBB9F61A601CBA00E9B192;
			productRefGroup = 83CBBA001A601CBA00E9B192 /* Products */;
			projectDirPath = "";
			projectRoot = "";
			targets = (
				13B07F861A680F5B00A75B9A /* DemoApp */,
			);
		};
/* End PBXProject section */

/* Begin PBXResourcesBuildPhase section */
		13B07F8E1A680F5B00A75B9A /* Resources */ = {
			isa = PBXResourcesBuildPhase;
			buildActionMask = 2147483647;
			files = (
			);
			runOnlyForDeploymentPostprocessing = 0;
		};
/* End PBXResourcesBuildPhase section */

/* Begin PBXSourcesBuildPhase section */
		13B07F871A680F5B00A75B9A /* Sources */ = {
			isa = PBXSourcesBuildPhase;
			buildActionMask = 2147483647;
			files = (
				13B07FBC1A68108700A75B9A /* AppDelegate.mm in Sources */,
			);
			runOnlyForDeploymentPostprocessing = 0;
		};
/* End PBXSourcesBuildPhase section */

/* Begin XCBuildConfiguration section */
		13B07F941A680F5B00A75B9A /* Debug */ = {
			isa = XCBuildConfiguration;
			buildSettings = {
				CODE_SIGN_ENTITLEMENTS = DemoApp/DemoApp.entitlements;
				INFOPLIST_FILE = DemoApp/Info.plist;
				PRODUCT_BUNDLE_IDENTIFIER = com.example.demo;
				PRODUCT_NAME = DemoApp;
				SWIFT_VERSION = 5.0;
			};
			name = Debug;
		};
		13B07F951A680F5B00A75B9A /* Release */ = {
			isa = XCBuildConfiguration;
			buildSettings = {
				CODE_SIGN_ENTITLEMENTS = DemoApp/DemoApp.entitlements;
				INFOPLIST_FILE = DemoApp/Info.plist;
				PRODUCT_BUNDLE_IDENTIFIER = com.example.demo;
				PRODUCT_NAME = DemoApp;
				SWIFT_VERSION = 5.0;
			};
			name = Release;
		};
		83CBBA201A601CBA00E9B192 /* Debug */ = {
			isa = XCBuildConfiguration;
			buildSettings = {
				ALWAYS_SEARCH_USER_PATHS = NO;
				IPHONEOS_DEPLOYMENT_TARGET = 15.1;
				SDKROOT = iphoneos;
			};
			name = Debug;
		};
		83CBBA211A601CBA00E9B192 /* Release */ = {
			isa = XCBuildConfiguration;
			buildSettings = {
				ALWAYS_SEARCH_USER_PATHS = NO;
				IPHONEOS_DEPLOYMENT_TARGET = 15.1;
				SDKROOT = iphoneos;
			};
			name = Release;
		};
/* End XCBuildConfiguration section */

/* Begin XCConfigurationList section */
		13B07F931A680F5B00A75B9A /* Build configuration list for PBXNativeTarget "DemoApp" */ = {
			isa = XCConfigurationList;
			buildConfigurations = (
				13B07F941A680F5B00A75B9A /* Debug */,
				13B07F951A680F5B00A75B9A /* Release */,
			);
			defaultConfigurationIsVisible = 0;
			defaultConfigurationName = Release;
		};
		83CBB9FA1A601CBA00E9B192 /* Build configuration list for PBXProject "DemoApp" */ = {
			isa = XCConfigurationList;
			buildConfigurations = (
				83CBBA201A601CBA00E9B192 /* Debug */,
				83CBBA211A601CBA00E9B192 /* Release */,
			);
			defaultConfigurationIsVisible = 0;
			defaultConfigurationName = Release;
		};
/* End XCConfigurationList section */
	};
	rootObject = 83CBB9F71A601CBA00E9B192 /* Project object */;
}
"""


def project_tree() -> dict:
    """The same project as `PBXPROJ_TEXT`, as a parsed dict tree."""
    phase = {"buildActionMask": "2147483647", "files": [], "runOnlyForDeploymentPostprocessing": "0"}
    app_settings = {
        "CODE_SIGN_ENTITLEMENTS": "DemoApp/DemoApp.entitlements",
        "INFOPLIST_FILE": "DemoApp/Info.plist",
        "PRODUCT_BUNDLE_IDENTIFIER": "com.example.demo",
        "PRODUCT_NAME": "DemoApp",
        "SWIFT_VERSION": "5.0",
    }
    project_settings = {
        "ALWAYS_SEARCH_USER_PATHS": "NO",
        "IPHONEOS_DEPLOYMENT_TARGET": "15.1",
        "SDKROOT": "iphoneos",
    }
    return {
        "archiveVersion": "1",
        "classes": {},
        "objectVersion": "54",
        "objects": {
            "13B07FBC1A68108700A75B9A": {"isa": "PBXBuildFile", "fileRef": "13B07FB01A68108700A75B9A"},
            "13B07F961A680F5B00A75B9A": {
                "isa": "PBXFileReference",
                "explicitFileType": "wrapper.application",
                "includeInIndex": "0",
                "path": "DemoApp.app",
                "sourceTree": "BUILT_PRODUCTS_DIR",
            },
            "13B07FB01A68108700A75B9A": {
                "isa": "PBXFileReference",
                "lastKnownFileType": "sourcecode.cpp.objcpp",
                "name": "AppDelegate.mm",
                "path": "DemoApp/AppDelegate.mm",
                "sourceTree": "<group>",
            },
            "13B07F8C1A680F5B00A75B9A": {"isa": "PBXFrameworksBuildPhase", **phase},
            "13B07FAE1A68108700A75B9A": {
                "isa": "PBXGroup",
                "children": ["13B07FB01A68108700A75B9A"],
                "name": "DemoApp",
                "sourceTree": "<group>",
            },
            MAIN_GROUP: {
                "isa": "PBXGroup",
                "children": ["13B07FAE1A68108700A75B9A", PRODUCTS_GROUP],
                "sourceTree": "<group>",
            },
            PRODUCTS_GROUP: {
                "isa": "PBXGroup",
                "children": ["13B07F961A680F5B00A75B9A"],
                "name": "Products",
                "sourceTree": "<group>",
            },
            APP_TARGET: {
                "isa": "PBXNativeTarget",
                "buildConfigurationList": APP_CONFIG_LIST,
                "buildPhases": [
                    "13B07F871A680F5B00A75B9A",
                    "13B07F8C1A680F5B00A75B9A",
                    "13B07F8E1A680F5B00A75B9A",
                ],
                "buildRules": [],
                "dependencies": [],
                "name": "DemoApp",
                "productName": "DemoApp",
                "productReference": "13B07F961A680F5B00A75B9A",
                "productType": "com.apple.product-type.application",
            },
            PROJECT: {
                "isa": "PBXProject",
                "attributes": {"LastUpgradeCheck": "1130"},
                "buildConfigurationList": "83CBB9FA1A601CBA00E9B192",
                "compatibilityVersion": "Xcode 12.0",
                "developmentRegion": "en",
                "hasScannedForEncodings": "0",
                "knownRegions": ["en", "Base"],
                "mainGroup": MAIN_GROUP,
                "productRefGroup": PRODUCTS_GROUP,
                "projectDirPath": "",
                "projectRoot": "",
                "targets": [APP_TARGET],
            },
            "13B07F8E1A680F5B00A75B9A": {"isa": "PBXResourcesBuildPhase", **phase},
            "13B07F871A680F5B00A75B9A": {
                "isa": "PBXSourcesBuildPhase",
                **phase,
                "files": ["13B07FBC1A68108700A75B9A"],
            },
            "13B07F941A680F5B00A75B9A": {
                "isa": "XCBuildConfiguration",
                "buildSettings": dict(app_settings),
                "name": "Debug",
            },
            "13B07F951A680F5B00A75B9A": {
                "isa": "XCBuildConfiguration",
                "buildSettings": dict(app_settings),
                "name": "Release",
            },
            "83CBBA201A601CBA00E9B192": {
                "isa": "XCBuildConfiguration",
                "buildSettings": dict(project_settings),
                "name": "Debug",
            },
            "83CBBA211A601CBA00E9B192": {
                "isa": "XCBuildConfiguration",
                "buildSettings": dict(project_settings),
                "name": "Release",
            },
            APP_CONFIG_LIST: {
                "isa": "XCConfigurationList",
                "buildConfigurations": ["13B07F941A680F5B00A75B9A", "13B07F951A680F5B00A75B9A"],
                "defaultConfigurationIsVisible": "0",
                "defaultConfigurationName": "Release",
            },
            "83CBB9FA1A601CBA00E9B192": {
                "isa": "XCConfigurationList",
                "buildConfigurations": ["83CBBA201A601CBA00E9B192", "83CBBA211A601CBA00E9B192"],
                "defaultConfigurationIsVisible": "0",
                "defaultConfigurationName": "Release",
            },
        },
        "rootObject": PROJECT,
    }


@pytest.fixture
def graph() -> ProjectGraph:
    return ProjectGraph.from_tree(project_tree())


WIDGET_TEMPLATES = ("StackTrackerWidget.swift", "WidgetViews.swift", "WidgetData.swift")
MODULE_TEMPLATES = ("WidgetKitModule.swift", "WidgetKitModule.m")
ICON_BYTES = b"\x89PNG\r\n\x1a\nicon"


def write_templates(templates: Path) -> None:
    templates.mkdir(parents=True, exist_ok=True)
    for name in WIDGET_TEMPLATES + MODULE_TEMPLATES:
        (templates / name).write_text(f"// {name}\n", encoding="utf-8")


@pytest.fixture
def app_root(tmp_path) -> Path:
    """An Expo-style app checkout with a generated `ios/` project and templates."""
    root = tmp_path / "app"
    xcodeproj = root / "ios" / "DemoApp.xcodeproj"
    xcodeproj.mkdir(parents=True)
    (xcodeproj / "project.pbxproj").write_text(PBXPROJ_TEXT, encoding="utf-8")

    icon_dir = root / "ios" / "DemoApp" / "Images.xcassets" / "AppIcon.appiconset"
    icon_dir.mkdir(parents=True)
    (icon_dir / "App-Icon-1024x1024@1x.png").write_bytes(ICON_BYTES)

    write_templates(root / "plugins" / "ios-widget" / "widget-files")
    return root
