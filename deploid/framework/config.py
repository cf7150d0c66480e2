from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Mapping

from deploid.errors import ConfigError, ConfigNotFoundError
from deploid.foundation.config_io import CONFIG_CANDIDATES, find_config_file, load_config_mapping

WebFramework = Literal["vite", "next", "cra", "static"]
ScreenOrientation = Literal[
    "portrait",
    "landscape",
    "sensor",
    "sensorPortrait",
    "sensorLandscape",
    "fullSensor",
    "reversePortrait",
    "reverseLandscape",
]
StatusBarStyle = Literal["light", "dark", "auto"]
WindowSoftInputMode = Literal["adjustResize", "adjustPan", "adjustNothing"]
LaunchMode = Literal["standard", "singleTop", "singleTask", "singleInstance"]
AndroidBuildType = Literal["apk", "aab", "both"]
PlayTrack = Literal["internal", "alpha", "beta", "production"]
MissingInputPolicy = Literal["abort", "warn_and_skip"]

WEB_FRAMEWORKS: tuple[str, ...] = ("vite", "next", "cra", "static")
PACKAGING_ENGINES: tuple[str, ...] = ("capacitor", "tauri", "twa")
SCREEN_ORIENTATIONS: tuple[str, ...] = (
    "portrait",
    "landscape",
    "sensor",
    "sensorPortrait",
    "sensorLandscape",
    "fullSensor",
    "reversePortrait",
    "reverseLandscape",
)
STATUS_BAR_STYLES: tuple[str, ...] = ("light", "dark", "auto")
SOFT_INPUT_MODES: tuple[str, ...] = ("adjustResize", "adjustPan", "adjustNothing")
LAUNCH_MODES: tuple[str, ...] = ("standard", "singleTop", "singleTask", "singleInstance")
BUILD_TYPES: tuple[str, ...] = ("apk", "aab", "both")
PLAY_TRACKS: tuple[str, ...] = ("internal", "alpha", "beta", "production")

_MISSING_INPUT_VALUES: dict[str, MissingInputPolicy] = {
    "abort": "abort",
    "warnAndSkip": "warn_and_skip",
    "warn_and_skip": "warn_and_skip",
}


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive, surrounding whitespace ignored).
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_int(value: Any, path: str) -> int:
    if value is None:
        raise ValueError(f"Invalid config value for {path}: None")
    if isinstance(value, bool):
        raise ValueError(f"Invalid config type for {path}: expected int, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if not value.strip():
            raise ValueError(f"Invalid config value for {path}: must be an int")
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid config value for {path}: must be an int") from exc
    raise ValueError(f"Invalid config type for {path}: expected int")


def parse_str(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Invalid config type for {path}: expected string")
    if not value.strip():
        raise ValueError(f"Invalid config value for {path}: must be a non-empty string")
    return value.strip()


def parse_choice(value: Any, path: str, choices: tuple[str, ...]) -> str:
    raw = parse_str(value, path)
    if raw not in choices:
        raise ValueError(f"Invalid config value for {path}: {raw!r} (expected: {'|'.join(choices)})")
    return raw


def _optional(mapping: Mapping[str, Any], key: str, parser: Any, path: str, *args: Any) -> Any:
    value = mapping.get(key)
    if value is None:
        return None
    return parser(value, f"{path}.{key}", *args)


def _section(value: Any, path: str, *, required: bool = False) -> Mapping[str, Any] | None:
    if value is None:
        if required:
            raise ValueError(f"Missing required config section: {path}")
        return None
    if not isinstance(value, Mapping):
        raise ValueError(f"Invalid config type for {path}: expected mapping")
    return value


def _str_list(value: Any, path: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"Invalid config type for {path}: expected list of strings")
    return tuple(parse_str(item, f"{path}[{idx}]") for idx, item in enumerate(value))


@dataclass(frozen=True)
class PwaConfig:
    manifest: str | None = None
    service_worker: bool = False


@dataclass(frozen=True)
class WebConfig:
    framework: WebFramework
    build_command: str = "npm run build"
    web_dir: str = "dist"
    pwa: PwaConfig | None = None


@dataclass(frozen=True)
class SigningConfig:
    keystore_path: str | None = None
    alias: str | None = None
    store_password_env: str | None = None
    key_password_env: str | None = None


@dataclass(frozen=True)
class VersionConfig:
    code: int
    name: str


@dataclass(frozen=True)
class DisplayConfig:
    fullscreen: bool | None = None
    immersive: bool | None = None
    orientation: ScreenOrientation | None = None
    status_bar_style: StatusBarStyle | None = None
    status_bar_hidden: bool | None = None
    navigation_bar_hidden: bool | None = None
    window_soft_input_mode: WindowSoftInputMode | None = None


@dataclass(frozen=True)
class LaunchConfig:
    launch_mode: LaunchMode | None = None
    task_affinity: str | None = None
    allow_backup: bool | None = None
    allow_clear_user_data: bool | None = None


@dataclass(frozen=True)
class BuildOptionsConfig:
    enable_proguard: bool | None = None
    enable_multidex: bool | None = None
    minify_enabled: bool | None = None
    shrink_resources: bool | None = None
    build_type: AndroidBuildType | None = None


@dataclass(frozen=True)
class PerformanceConfig:
    hardware_accelerated: bool | None = None
    large_heap: bool | None = None


@dataclass(frozen=True)
class AndroidConfig:
    packaging: str
    target_sdk: int | None = None
    min_sdk: int | None = None
    permissions: tuple[str, ...] = ()
    signing: SigningConfig | None = None
    version: VersionConfig | None = None
    display: DisplayConfig | None = None
    launch: LaunchConfig | None = None
    build: BuildOptionsConfig | None = None
    performance: PerformanceConfig | None = None


@dataclass(frozen=True)
class AssetsConfig:
    source: str | None = None
    output: str = "assets-gen"


@dataclass(frozen=True)
class PlayPublishConfig:
    track: PlayTrack | None = None
    service_account_json: str | None = None


@dataclass(frozen=True)
class GithubPublishConfig:
    repo: str
    draft: bool = True


@dataclass(frozen=True)
class PublishConfig:
    play: PlayPublishConfig | None = None
    github: GithubPublishConfig | None = None


_ANDROID_SCHEMA: Mapping[str, Any] = {
    "packaging": None,
    "targetSdk": None,
    "minSdk": None,
    "permissions": None,
    "signing": {
        "keystorePath": None,
        "alias": None,
        "storePasswordEnv": None,
        "keyPasswordEnv": None,
    },
    "version": {"code": None, "name": None},
    "display": {
        "fullscreen": None,
        "immersive": None,
        "orientation": None,
        "statusBarStyle": None,
        "statusBarHidden": None,
        "navigationBarHidden": None,
        "windowSoftInputMode": None,
    },
    "launch": {
        "launchMode": None,
        "taskAffinity": None,
        "allowBackup": None,
        "allowClearUserData": None,
    },
    "build": {
        "enableProguard": None,
        "enableMultidex": None,
        "minifyEnabled": None,
        "shrinkResources": None,
        "buildType": None,
    },
    "performance": {"hardwareAccelerated": None, "largeHeap": None},
}

CONFIG_SCHEMA: Mapping[str, Any] = {
    "appName": None,
    "appId": None,
    "web": {
        "framework": None,
        "buildCommand": None,
        "webDir": None,
        "pwa": {"manifest": None, "serviceWorker": None},
    },
    "android": _ANDROID_SCHEMA,
    "assets": {"source": None, "output": None},
    "publish": {
        "play": {"track": None, "serviceAccountJson": None},
        "github": {"repo": None, "draft": None},
    },
    "plugins": None,
    "onMissingInput": None,
    "strict": None,
}


def collect_unknown_keys(mapping: Any, schema: Mapping[str, Any], *, prefix: str = "") -> list[str]:
    if not isinstance(mapping, Mapping):
        return []
    unknown: list[str] = []
    for key, value in mapping.items():
        if not isinstance(key, str):
            continue
        dotted = f"{prefix}.{key}" if prefix else key
        if key not in schema:
            unknown.append(dotted)
            continue
        subschema = schema.get(key)
        if isinstance(subschema, Mapping):
            unknown.extend(collect_unknown_keys(value, subschema, prefix=dotted))
    return unknown


def _parse_web(raw: Mapping[str, Any]) -> WebConfig:
    if raw.get("framework") is None:
        raise ValueError("Missing required config key: web.framework")
    framework = parse_choice(raw.get("framework"), "web.framework", WEB_FRAMEWORKS)

    pwa: PwaConfig | None = None
    pwa_raw = _section(raw.get("pwa"), "web.pwa")
    if pwa_raw is not None:
        pwa = PwaConfig(
            manifest=_optional(pwa_raw, "manifest", parse_str, "web.pwa"),
            service_worker=bool(_optional(pwa_raw, "serviceWorker", parse_bool, "web.pwa")),
        )

    return WebConfig(
        framework=framework,  # type: ignore[arg-type]
        build_command=_optional(raw, "buildCommand", parse_str, "web") or "npm run build",
        web_dir=_optional(raw, "webDir", parse_str, "web") or "dist",
        pwa=pwa,
    )


def _parse_android(raw: Mapping[str, Any]) -> AndroidConfig:
    if raw.get("packaging") is None:
        raise ValueError("Missing required config key: android.packaging")
    packaging = parse_str(raw.get("packaging"), "android.packaging")

    signing: SigningConfig | None = None
    signing_raw = _section(raw.get("signing"), "android.signing")
    if signing_raw is not None:
        signing = SigningConfig(
            keystore_path=_optional(signing_raw, "keystorePath", parse_str, "android.signing"),
            alias=_optional(signing_raw, "alias", parse_str, "android.signing"),
            store_password_env=_optional(
                signing_raw, "storePasswordEnv", parse_str, "android.signing"
            ),
            key_password_env=_optional(signing_raw, "keyPasswordEnv", parse_str, "android.signing"),
        )

    version: VersionConfig | None = None
    version_raw = _section(raw.get("version"), "android.version")
    if version_raw is not None:
        code = parse_int(version_raw.get("code"), "android.version.code")
        if code <= 0:
            raise ValueError("Invalid config value for android.version.code: must be > 0")
        version = VersionConfig(code=code, name=parse_str(version_raw.get("name"), "android.version.name"))

    display: DisplayConfig | None = None
    display_raw = _section(raw.get("display"), "android.display")
    if display_raw is not None:
        display = DisplayConfig(
            fullscreen=_optional(display_raw, "fullscreen", parse_bool, "android.display"),
            immersive=_optional(display_raw, "immersive", parse_bool, "android.display"),
            orientation=_optional(
                display_raw, "orientation", parse_choice, "android.display", SCREEN_ORIENTATIONS
            ),
            status_bar_style=_optional(
                display_raw, "statusBarStyle", parse_choice, "android.display", STATUS_BAR_STYLES
            ),
            status_bar_hidden=_optional(display_raw, "statusBarHidden", parse_bool, "android.display"),
            navigation_bar_hidden=_optional(
                display_raw, "navigationBarHidden", parse_bool, "android.display"
            ),
            window_soft_input_mode=_optional(
                display_raw, "windowSoftInputMode", parse_choice, "android.display", SOFT_INPUT_MODES
            ),
        )

    launch: LaunchConfig | None = None
    launch_raw = _section(raw.get("launch"), "android.launch")
    if launch_raw is not None:
        launch = LaunchConfig(
            launch_mode=_optional(launch_raw, "launchMode", parse_choice, "android.launch", LAUNCH_MODES),
            task_affinity=_optional(launch_raw, "taskAffinity", parse_str, "android.launch"),
            allow_backup=_optional(launch_raw, "allowBackup", parse_bool, "android.launch"),
            allow_clear_user_data=_optional(
                launch_raw, "allowClearUserData", parse_bool, "android.launch"
            ),
        )

    build: BuildOptionsConfig | None = None
    build_raw = _section(raw.get("build"), "android.build")
    if build_raw is not None:
        build = BuildOptionsConfig(
            enable_proguard=_optional(build_raw, "enableProguard", parse_bool, "android.build"),
            enable_multidex=_optional(build_raw, "enableMultidex", parse_bool, "android.build"),
            minify_enabled=_optional(build_raw, "minifyEnabled", parse_bool, "android.build"),
            shrink_resources=_optional(build_raw, "shrinkResources", parse_bool, "android.build"),
            build_type=_optional(build_raw, "buildType", parse_choice, "android.build", BUILD_TYPES),
        )

    performance: PerformanceConfig | None = None
    performance_raw = _section(raw.get("performance"), "android.performance")
    if performance_raw is not None:
        performance = PerformanceConfig(
            hardware_accelerated=_optional(
                performance_raw, "hardwareAccelerated", parse_bool, "android.performance"
            ),
            large_heap=_optional(performance_raw, "largeHeap", parse_bool, "android.performance"),
        )

    target_sdk = _optional(raw, "targetSdk", parse_int, "android")
    min_sdk = _optional(raw, "minSdk", parse_int, "android")
    if target_sdk is not None and min_sdk is not None and min_sdk > target_sdk:
        raise ValueError(
            f"Invalid config value for android.minSdk: {min_sdk} is greater than targetSdk {target_sdk}"
        )

    return AndroidConfig(
        packaging=packaging,
        target_sdk=target_sdk,
        min_sdk=min_sdk,
        permissions=_str_list(raw.get("permissions"), "android.permissions"),
        signing=signing,
        version=version,
        display=display,
        launch=launch,
        build=build,
        performance=performance,
    )


def _parse_publish(raw: Mapping[str, Any]) -> PublishConfig:
    play: PlayPublishConfig | None = None
    play_raw = _section(raw.get("play"), "publish.play")
    if play_raw is not None:
        play = PlayPublishConfig(
            track=_optional(play_raw, "track", parse_choice, "publish.play", PLAY_TRACKS),
            service_account_json=_optional(play_raw, "serviceAccountJson", parse_str, "publish.play"),
        )

    github: GithubPublishConfig | None = None
    github_raw = _section(raw.get("github"), "publish.github")
    if github_raw is not None:
        repo = parse_str(github_raw.get("repo"), "publish.github.repo")
        if repo.count("/") != 1 or repo.startswith("/") or repo.endswith("/"):
            raise ValueError(
                f"Invalid config value for publish.github.repo: {repo!r} (expected owner/name)"
            )
        draft = github_raw.get("draft")
        github = GithubPublishConfig(
            repo=repo,
            draft=True if draft is None else parse_bool(draft, "publish.github.draft"),
        )

    return PublishConfig(play=play, github=github)


@dataclass(frozen=True)
class DeploidConfig:
    app_name: str
    app_id: str
    web: WebConfig
    android: AndroidConfig
    assets: AssetsConfig | None = None
    publish: PublishConfig | None = None
    plugins: tuple[str, ...] = ()
    on_missing_input: MissingInputPolicy | None = None
    source_path: Path | None = None

    @staticmethod
    def from_dict(
        cfg: Mapping[str, Any],
        *,
        strict: bool = False,
        source_path: Path | None = None,
    ) -> tuple["DeploidConfig", list[str]]:
        """
        Parse and validate a deploid config mapping, returning (DeploidConfig, warnings).

        Raises:
            ValueError: if required keys are missing or invalid, or if unknown keys
            are present in strict mode.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        warnings: list[str] = []
        strict_unknown_keys = strict
        if "strict" in cfg:
            strict_unknown_keys = strict_unknown_keys or parse_bool(cfg.get("strict"), "strict")

        unknown_keys = sorted(set(collect_unknown_keys(cfg, CONFIG_SCHEMA)))
        if unknown_keys:
            if strict_unknown_keys:
                raise ValueError("Unknown config keys: " + ", ".join(unknown_keys))
            warnings.extend(f"Unknown config key: {key}" for key in unknown_keys)

        for key in ("appName", "appId"):
            if cfg.get(key) is None:
                raise ValueError(f"Missing required config key: {key}")
        app_name = parse_str(cfg.get("appName"), "appName")
        app_id = parse_str(cfg.get("appId"), "appId")
        if "." not in app_id:
            warnings.append(f"appId {app_id!r} is not reverse-domain style (e.g. com.example.app)")

        web_raw = _section(cfg.get("web"), "web", required=True)
        android_raw = _section(cfg.get("android"), "android", required=True)
        assert web_raw is not None and android_raw is not None
        web = _parse_web(web_raw)
        android = _parse_android(android_raw)
        if android.packaging not in PACKAGING_ENGINES:
            warnings.append(
                f"android.packaging {android.packaging!r} is not a bundled engine "
                f"({'|'.join(PACKAGING_ENGINES)}); a local step package is required"
            )

        assets: AssetsConfig | None = None
        assets_raw = _section(cfg.get("assets"), "assets")
        if assets_raw is not None:
            output = _optional(assets_raw, "output", parse_str, "assets") or "assets-gen"
            assets = AssetsConfig(
                source=_optional(assets_raw, "source", parse_str, "assets"),
                output=output.rstrip("/\\") or "assets-gen",
            )

        publish: PublishConfig | None = None
        publish_raw = _section(cfg.get("publish"), "publish")
        if publish_raw is not None:
            publish = _parse_publish(publish_raw)

        on_missing_input: MissingInputPolicy | None = None
        raw_policy = cfg.get("onMissingInput")
        if raw_policy is not None:
            policy_key = parse_str(raw_policy, "onMissingInput")
            if policy_key not in _MISSING_INPUT_VALUES:
                raise ValueError(
                    f"Invalid config value for onMissingInput: {policy_key!r} (expected: abort|warnAndSkip)"
                )
            on_missing_input = _MISSING_INPUT_VALUES[policy_key]

        return (
            DeploidConfig(
                app_name=app_name,
                app_id=app_id,
                web=web,
                android=android,
                assets=assets,
                publish=publish,
                plugins=_str_list(cfg.get("plugins"), "plugins"),
                on_missing_input=on_missing_input,
                source_path=source_path,
            ),
            warnings,
        )


def load_config(
    cwd: str | os.PathLike[str] | None = None,
    *,
    strict: bool = False,
    logger: Any | None = None,
) -> DeploidConfig:
    """Locate, load and validate the project's deploid config.

    The first existing name in `CONFIG_CANDIDATES` wins. Warnings (unknown keys and
    similar) are sent to `logger.warn` when a logger is given.
    """

    root = Path(cwd or os.getcwd())
    path = find_config_file(root)
    if path is None:
        raise ConfigNotFoundError(
            f"No deploid config found in {root} (looked for: {', '.join(CONFIG_CANDIDATES)})"
        )
    if logger is not None:
        logger.debug_file(path, "Config file")

    payload = load_config_mapping(path)
    try:
        config, warnings = DeploidConfig.from_dict(payload, strict=strict, source_path=path)
    except ConfigError:
        raise
    except ValueError as exc:
        raise ConfigError(f"{exc} (in {path.name})") from exc

    if logger is not None:
        for message in warnings:
            logger.warn(message)
    return config
