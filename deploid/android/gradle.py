"""Format-preserving text patches for Gradle build scripts.

Every function takes the current file text and returns the patched text;
callers decide whether to write. Block lookups match braces naively, which is
enough for the scripts Capacitor generates.
"""

from __future__ import annotations

import re

from deploid.framework.config import BuildOptionsConfig

ANDROID_GRADLE_PLUGIN_VERSION = "8.12.0"
GRADLE_WRAPPER_VERSION = "8.13"
JAVA_VERSION = 21
GOOGLE_SERVICES_PLUGIN = "com.google.gms.google-services"
FIREBASE_DEPENDENCIES: tuple[str, ...] = (
    "com.google.firebase:firebase-messaging:23.4.1",
    "com.google.firebase:firebase-analytics:21.5.1",
)
MULTIDEX_DEPENDENCY = "androidx.multidex:multidex:2.0.1"
PROGUARD_FILES = "proguardFiles getDefaultProguardFile('proguard-android-optimize.txt'), 'proguard-rules.pro'"

_APPLICATION_ID_RE = re.compile(r"""applicationId\s+(['"])([^'"]*)\1""")


def find_block(text: str, header: str, start: int = 0) -> tuple[int, int] | None:
    """Return (index after '{', index of matching '}') for the first `header {` block."""

    match = re.compile(rf"\b{header}\s*\{{").search(text, start)
    if match is None:
        return None
    depth = 1
    for index in range(match.end(), len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return match.end(), index
    return None


def _line_indent(text: str, index: int) -> str:
    line_start = text.rfind("\n", 0, index) + 1
    line = text[line_start:index]
    return line[: len(line) - len(line.lstrip())]


def _insert_at_block_start(text: str, header: str, lines: list[str], *, start: int = 0) -> str:
    block = find_block(text, header, start)
    if block is None or not lines:
        return text
    body_start, _ = block
    indent = _line_indent(text, body_start) + "    "
    addition = "".join(f"\n{indent}{line}" for line in lines)
    return text[:body_start] + addition + text[body_start:]


def read_application_id(text: str) -> str | None:
    match = _APPLICATION_ID_RE.search(text)
    return match.group(2) if match else None


def set_application_id(text: str, app_id: str) -> str:
    if _APPLICATION_ID_RE.search(text):
        return _APPLICATION_ID_RE.sub(f'applicationId "{app_id}"', text, count=1)
    return _insert_at_block_start(text, "defaultConfig", [f'applicationId "{app_id}"'])


def set_sdk_versions(text: str, *, target_sdk: int | None = None, min_sdk: int | None = None) -> str:
    if target_sdk is not None:
        text = re.sub(r"\b(compileSdk(?:Version)?)([ \t]*=?[ \t]*)\d+", rf"\g<1>\g<2>{target_sdk}", text)
        text = re.sub(r"\b(targetSdk(?:Version)?)([ \t]*=?[ \t]*)\d+", rf"\g<1>\g<2>{target_sdk}", text)
    if min_sdk is not None:
        text = re.sub(r"\b(minSdk(?:Version)?)([ \t]*=?[ \t]*)\d+", rf"\g<1>\g<2>{min_sdk}", text)
    return text


def set_version(text: str, *, code: int, name: str) -> str:
    text = re.sub(r"\bversionCode\s+\d+", f"versionCode {code}", text, count=1)
    text = re.sub(r"""\bversionName\s+(['"])[^'"]*\1""", f'versionName "{name}"', text, count=1)
    return text


def ensure_java_version(text: str, version: int = JAVA_VERSION) -> str:
    if "sourceCompatibility" in text:
        text = re.sub(
            r"sourceCompatibility(\s*=?\s*)JavaVersion\.VERSION_[\d_]+",
            rf"sourceCompatibility\g<1>JavaVersion.VERSION_{version}",
            text,
        )
        return re.sub(
            r"targetCompatibility(\s*=?\s*)JavaVersion\.VERSION_[\d_]+",
            rf"targetCompatibility\g<1>JavaVersion.VERSION_{version}",
            text,
        )

    block = find_block(text, "android")
    if block is None:
        return text
    _, body_end = block
    indent = _line_indent(text, body_end) + "    "
    compile_options = (
        f"\n{indent}compileOptions {{\n"
        f"{indent}    sourceCompatibility JavaVersion.VERSION_{version}\n"
        f"{indent}    targetCompatibility JavaVersion.VERSION_{version}\n"
        f"{indent}}}\n"
    )
    head = text[:body_end].rstrip(" \t")
    return head + compile_options + _line_indent(text, body_end) + text[body_end:]


def apply_release_options(text: str, build: BuildOptionsConfig) -> str:
    build_types = find_block(text, "buildTypes")
    if build_types is None:
        return text
    release = find_block(text, "release", build_types[0])
    if release is None or release[1] > build_types[1]:
        return text

    body_start, body_end = release
    body = text[body_start:body_end]
    additions: list[str] = []

    for key, value in (("minifyEnabled", build.minify_enabled), ("shrinkResources", build.shrink_resources)):
        if value is None:
            continue
        literal = "true" if value else "false"
        if re.search(rf"\b{key}\b", body):
            body = re.sub(rf"\b{key}(\s*=?\s*)\w+", rf"{key}\g<1>{literal}", body, count=1)
        else:
            additions.append(f"{key} {literal}")

    if build.enable_proguard and "proguardFiles" not in body:
        additions.append(PROGUARD_FILES)

    text = text[:body_start] + body + text[body_end:]
    if additions:
        text = _insert_at_block_start(text, "release", additions, start=build_types[0])
    return text


def enable_multidex(text: str) -> str:
    if "multiDexEnabled" not in text:
        text = _insert_at_block_start(text, "defaultConfig", ["multiDexEnabled true"])
    if "androidx.multidex:multidex" not in text:
        text = _insert_at_block_start(text, "dependencies", [f"implementation '{MULTIDEX_DEPENDENCY}'"])
    return text


def has_google_services(text: str) -> bool:
    return GOOGLE_SERVICES_PLUGIN in text


def remove_google_services(text: str) -> str:
    text = re.sub(
        rf"""^[ \t]*apply plugin:\s*['"]{re.escape(GOOGLE_SERVICES_PLUGIN)}['"][ \t]*\n?""",
        "",
        text,
        flags=re.MULTILINE,
    )
    text = re.sub(r"^[ \t]*// Firebase dependencies[ \t]*\n", "", text, flags=re.MULTILINE)
    for dependency in FIREBASE_DEPENDENCIES:
        artifact = dependency.rsplit(":", 1)[0]
        text = re.sub(
            rf"""^[ \t]*implementation\s+['"]{re.escape(artifact)}:[^'"]*['"][ \t]*\n?""",
            "",
            text,
            flags=re.MULTILINE,
        )
    return text


def add_google_services(text: str) -> str:
    if has_google_services(text):
        return text
    text = re.sub(
        r"""^(apply plugin:\s*['"]com\.android\.application['"])""",
        rf"\1\napply plugin: '{GOOGLE_SERVICES_PLUGIN}'",
        text,
        count=1,
        flags=re.MULTILINE,
    )
    if "firebase-messaging" not in text:
        lines = ["// Firebase dependencies", *(f"implementation '{dep}'" for dep in FIREBASE_DEPENDENCIES)]
        text = _insert_at_block_start(text, "dependencies", lines)
    return text


def set_android_gradle_plugin(text: str, version: str = ANDROID_GRADLE_PLUGIN_VERSION) -> str:
    return re.sub(
        r"""(classpath\s+['"]com\.android\.tools\.build:gradle:)\d+\.\d+\.\d+(['"])""",
        rf"\g<1>{version}\g<2>",
        text,
    )


def set_wrapper_distribution(text: str, version: str = GRADLE_WRAPPER_VERSION) -> str:
    return re.sub(
        r"distributionUrl=.*gradle-[\d.]+-(all|bin)\.zip",
        lambda _m: f"distributionUrl=https\\://services.gradle.org/distributions/gradle-{version}-all.zip",
        text,
    )


def render_gradle_properties(java_home: str) -> str:
    return (
        "# Java toolchain used by Gradle\n"
        f"org.gradle.java.home={java_home}\n"
        "\n"
        "# AndroidX\n"
        "android.useAndroidX=true\n"
        "android.enableJetifier=true\n"
        "\n"
        "# Build performance\n"
        "org.gradle.parallel=true\n"
        "org.gradle.configureondemand=true\n"
        "org.gradle.caching=true\n"
        "org.gradle.daemon=true\n"
        "org.gradle.jvmargs=-Xmx4g -XX:MaxMetaspaceSize=1g -Dfile.encoding=UTF-8\n"
    )
