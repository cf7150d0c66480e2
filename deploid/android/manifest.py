"""Structured edits of AndroidManifest.xml and res/values/strings.xml.

Both files are parsed with ElementTree (comments kept) and rewritten in full.
Attributes the developer already set are never overwritten, except for the
app label and package which always follow the deploid config.
"""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from deploid.framework.config import AndroidConfig

ANDROID_NS = "http://schemas.android.com/apk/res/android"
TOOLS_NS = "http://schemas.android.com/tools"

DEFAULT_EXTRA_PERMISSIONS: tuple[str, ...] = (
    "android.permission.ACCESS_NETWORK_STATE",
    "android.permission.ACCESS_WIFI_STATE",
    "android.permission.CAMERA",
    "android.permission.VIBRATE",
)
FULLSCREEN_THEME = "@android:style/Theme.NoTitleBar.Fullscreen"
STRING_APP_NAME = "@string/app_name"
NETWORK_SECURITY_CONFIG = "@xml/network_security_config"


def android_attr(name: str) -> str:
    return f"{{{ANDROID_NS}}}{name}"


def _xml_bool(value: bool) -> str:
    return "true" if value else "false"


def normalize_permission(name: str) -> str:
    name = name.strip()
    return name if "." in name else f"android.permission.{name}"


def parse_xml(path: str | os.PathLike[str]) -> ET.ElementTree:
    ET.register_namespace("android", ANDROID_NS)
    ET.register_namespace("tools", TOOLS_NS)
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    return ET.parse(path, parser=parser)


def write_xml(tree: ET.ElementTree, path: str | os.PathLike[str]) -> None:
    ET.indent(tree, space="    ")
    tree.write(path, encoding="utf-8", xml_declaration=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write("\n")


@dataclass
class ManifestUpdate:
    changes: list[str] = field(default_factory=list)
    previous_package: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def find_main_activity(root: ET.Element) -> ET.Element | None:
    application = root.find("application")
    if application is None:
        return None
    activities = application.findall("activity")
    for activity in activities:
        for action in activity.iter("action"):
            if action.get(android_attr("name")) == "android.intent.action.MAIN":
                return activity
    for activity in activities:
        if "MainActivity" in (activity.get(android_attr("name")) or ""):
            return activity
    return None


def _set_if_absent(element: ET.Element, name: str, value: str, changes: list[str]) -> None:
    key = android_attr(name)
    if key in element.attrib:
        return
    element.set(key, value)
    changes.append(f"{element.tag} android:{name}={value}")


def apply_application_options(application: ET.Element, android: AndroidConfig) -> list[str]:
    changes: list[str] = []
    if android_attr("networkSecurityConfig") not in application.attrib:
        _set_if_absent(application, "networkSecurityConfig", NETWORK_SECURITY_CONFIG, changes)
        _set_if_absent(application, "usesCleartextTraffic", "true", changes)

    performance = android.performance
    if performance is not None and performance.hardware_accelerated is not None:
        _set_if_absent(
            application, "hardwareAccelerated", _xml_bool(performance.hardware_accelerated), changes
        )
    if performance is not None and performance.large_heap is not None:
        _set_if_absent(application, "largeHeap", _xml_bool(performance.large_heap), changes)

    launch = android.launch
    if launch is not None and launch.allow_backup is not None:
        _set_if_absent(application, "allowBackup", _xml_bool(launch.allow_backup), changes)
    if launch is not None and launch.allow_clear_user_data is not None:
        _set_if_absent(
            application, "allowClearUserData", _xml_bool(launch.allow_clear_user_data), changes
        )
    return changes


def apply_activity_options(activity: ET.Element, android: AndroidConfig) -> list[str]:
    changes: list[str] = []
    display = android.display
    if display is not None:
        if display.fullscreen:
            _set_if_absent(activity, "theme", FULLSCREEN_THEME, changes)
        if display.orientation:
            _set_if_absent(activity, "screenOrientation", display.orientation, changes)
        if display.window_soft_input_mode:
            _set_if_absent(activity, "windowSoftInputMode", display.window_soft_input_mode, changes)

    launch = android.launch
    if launch is not None:
        if launch.launch_mode:
            _set_if_absent(activity, "launchMode", launch.launch_mode, changes)
        if launch.task_affinity:
            _set_if_absent(activity, "taskAffinity", launch.task_affinity, changes)
    return changes


def ensure_permissions(root: ET.Element, permissions: Iterable[str]) -> list[str]:
    existing = {
        element.get(android_attr("name")) for element in root.findall("uses-permission")
    }
    added: list[str] = []
    children = list(root)
    application = root.find("application")
    # New permissions go before <application>, after any existing ones.
    position = children.index(application) if application is not None else len(children)
    for permission in permissions:
        name = normalize_permission(permission)
        if name in existing:
            continue
        element = ET.Element("uses-permission")
        element.set(android_attr("name"), name)
        root.insert(position, element)
        position += 1
        existing.add(name)
        added.append(name)
    return added


def update_manifest(
    path: str | os.PathLike[str],
    *,
    app_name: str,
    app_id: str,
    android: AndroidConfig,
) -> ManifestUpdate:
    """Apply deploid's label, package, attribute and permission edits in place."""

    tree = parse_xml(path)
    root = tree.getroot()
    result = ManifestUpdate()

    application = root.find("application")
    if application is None:
        raise ValueError(f"No <application> element found in {path}")

    label_key = android_attr("label")
    label = application.get(label_key)
    if label != STRING_APP_NAME and label != app_name:
        application.set(label_key, app_name)
        result.changes.append(f"application android:label={app_name}")

    current_package = root.get("package")
    if current_package is not None and current_package != app_id:
        root.set("package", app_id)
        result.previous_package = current_package
        result.changes.append(f"manifest package={app_id}")

    result.changes.extend(apply_application_options(application, android))

    activity = find_main_activity(root)
    if activity is not None:
        result.changes.extend(apply_activity_options(activity, android))

    added = ensure_permissions(root, (*DEFAULT_EXTRA_PERMISSIONS, *android.permissions))
    result.changes.extend(f"uses-permission {name}" for name in added)

    if result.changed:
        write_xml(tree, path)
    return result


def update_strings_app_name(path: str | os.PathLike[str], app_name: str) -> bool:
    """Set `app_name` in strings.xml, creating the file when missing."""

    strings_path = Path(path)
    if not strings_path.is_file():
        strings_path.parent.mkdir(parents=True, exist_ok=True)
        resources = ET.Element("resources")
        entry = ET.SubElement(resources, "string", {"name": "app_name"})
        entry.text = app_name
        write_xml(ET.ElementTree(resources), strings_path)
        return True

    tree = parse_xml(strings_path)
    root = tree.getroot()
    for entry in root.findall("string"):
        if entry.get("name") == "app_name":
            if entry.text == app_name:
                return False
            entry.text = app_name
            break
    else:
        entry = ET.Element("string", {"name": "app_name"})
        entry.text = app_name
        root.insert(0, entry)
    write_xml(tree, strings_path)
    return True
