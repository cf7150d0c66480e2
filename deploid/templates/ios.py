from __future__ import annotations

import textwrap
from typing import Any

IOS_DEPLOYMENT_TARGET = "13.0"
SWIFT_VERSION = "5.10"

CAMERA_USAGE = "Camera access is required to scan documents and take photos."
PHOTO_LIBRARY_USAGE = "Photo library access is needed to save and select images."
MICROPHONE_USAGE = "Microphone access is required for voice notes and audio features."

APP_TRANSPORT_SECURITY: dict[str, Any] = {
    "NSAllowsArbitraryLoads": True,
    "NSExceptionDomains": {
        "localhost": {"NSTemporaryExceptionAllowsInsecureHTTPLoads": True},
        "192.168.0.0": {"NSTemporaryExceptionAllowsInsecureHTTPLoads": True},
    },
}

# (size, idiom, scale) for every AppIcon slot Xcode expects.
APP_ICON_SLOTS: tuple[tuple[str, str, str], ...] = (
    ("20x20", "iphone", "2x"),
    ("20x20", "iphone", "3x"),
    ("29x29", "iphone", "2x"),
    ("29x29", "iphone", "3x"),
    ("40x40", "iphone", "2x"),
    ("40x40", "iphone", "3x"),
    ("60x60", "iphone", "2x"),
    ("60x60", "iphone", "3x"),
    ("20x20", "ipad", "1x"),
    ("20x20", "ipad", "2x"),
    ("29x29", "ipad", "1x"),
    ("29x29", "ipad", "2x"),
    ("40x40", "ipad", "1x"),
    ("40x40", "ipad", "2x"),
    ("76x76", "ipad", "1x"),
    ("76x76", "ipad", "2x"),
    ("83.5x83.5", "ipad", "2x"),
    ("1024x1024", "ios-marketing", "1x"),
)

CAPACITOR_IOS_BLOCK = textwrap.dedent(
    """\
      ios: {
        contentInset: 'always',
        backgroundColor: '#ffffff',
        scheme: 'https',
        allowsLinkPreview: false,
        prefersLargeTitles: false,
        scrollEnabled: true
      },
    """
)


def app_icon_contents() -> dict[str, Any]:
    images = [
        {
            "size": size,
            "idiom": idiom,
            "scale": scale,
            "filename": f"Icon-App-{size}@{scale}.png",
        }
        for size, idiom, scale in APP_ICON_SLOTS
    ]
    return {"images": images, "info": {"author": "xcode", "version": 1}}


def entitlements(*, app_id: str) -> str:
    return textwrap.dedent(
        f"""\
        <?xml version="1.0" encoding="UTF-8"?>
        <!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
        <plist version="1.0">
        <dict>
          <!-- Enable these capabilities in Xcode when needed -->
          <!-- <key>aps-environment</key><string>development</string> -->
          <!-- <key>keychain-access-groups</key><array><string>$(AppIdentifierPrefix){app_id}</string></array> -->
          <!-- <key>com.apple.developer.app-groups</key><array><string>group.{app_id}</string></array> -->
        </dict>
        </plist>
        """
    )


PODFILE = textwrap.dedent(
    f"""\
    platform :ios, '{IOS_DEPLOYMENT_TARGET}'
    use_frameworks! :linkage => :static

    target 'App' do
      pod 'Capacitor', :path => '../node_modules/@capacitor/ios'
      pod 'CapacitorCordova', :path => '../node_modules/@capacitor/ios'

      # Add Capacitor plugins here as needed
      # pod 'CapacitorCamera', :path => '../node_modules/@capacitor/camera'
      # pod 'CapacitorPushNotifications', :path => '../node_modules/@capacitor/push-notifications'
    end

    post_install do |installer|
      installer.pods_project.targets.each do |target|
        target.build_configurations.each do |config|
          config.build_settings['IPHONEOS_DEPLOYMENT_TARGET'] = '{IOS_DEPLOYMENT_TARGET}'
          config.build_settings['SWIFT_VERSION'] = '{SWIFT_VERSION}'
          config.build_settings['ENABLE_BITCODE'] = 'NO'
        end
      end
    end
    """
)


def xcconfig(*, configuration: str, app_id: str, version_code: int, version_name: str) -> str:
    if configuration == "Debug":
        extra = "GCC_PREPROCESSOR_DEFINITIONS = DEBUG=1\nOTHER_SWIFT_FLAGS = -D DEBUG\n"
    elif configuration == "Release":
        extra = "GCC_PREPROCESSOR_DEFINITIONS = RELEASE=1\n"
    else:
        raise ValueError(f"Unknown Xcode configuration: {configuration}")
    return (
        f"// {configuration}.xcconfig\n"
        f"SWIFT_VERSION = {SWIFT_VERSION}\n"
        f"IPHONEOS_DEPLOYMENT_TARGET = {IOS_DEPLOYMENT_TARGET}\n"
        f"PRODUCT_BUNDLE_IDENTIFIER = {app_id}\n"
        f"CURRENT_PROJECT_VERSION = {version_code}\n"
        f"MARKETING_VERSION = {version_name}\n"
        f"{extra}"
    )


def handbook(*, app_id: str, version_name: str, build_number: int) -> str:
    return textwrap.dedent(
        f"""\
        # iOS Build Handoff Guide

        Step-by-step instructions for building and distributing the iOS app on macOS.

        ## Prerequisites

        - **macOS** with Xcode 15.0 or later
        - **Apple Developer Account** (for distribution)
        - **CocoaPods** installed

        ## Setup Steps

        ### 1. Install dependencies

        ```bash
        sudo gem install cocoapods
        cd ios
        pod install
        ```

        ### 2. Open the project in Xcode

        ```bash
        # Open the workspace, not the .xcodeproj
        open App.xcworkspace
        ```

        ### 3. Configure signing

        1. Select the **App** project and the **App** target
        2. Open **Signing & Capabilities**
        3. Set your **Team** and keep **Automatically manage signing** checked
        4. Verify the **Bundle Identifier** matches: `{app_id}`

        ### 4. Build and archive

        1. Select **Any iOS Device (arm64)** as the destination
        2. **Product** -> **Archive**
        3. The **Organizer** window opens when the build completes

        ### 5. Distribute

        #### TestFlight

        1. In the Organizer, select the archive and click **Distribute App**
        2. Choose **App Store Connect** -> **Upload**
        3. Manage the build in [App Store Connect](https://appstoreconnect.apple.com)

        #### Ad Hoc

        1. **Distribute App** -> **Ad Hoc**
        2. Select test devices and export the .ipa

        ## Troubleshooting

        #### "No matching provisioning profile found"
        - Check the certificates of your Apple Developer Account
        - Register the Bundle ID in your developer account
        - Refresh provisioning profiles in Xcode

        #### "CocoaPods not found"
        ```bash
        sudo gem install cocoapods
        cd ios && pod install
        ```

        #### "Build failed with Swift version"
        - Update Xcode
        - Match the Swift version in `ios/Config/*.xcconfig` to your Xcode

        ## Build Settings

        - **iOS Deployment Target**: {IOS_DEPLOYMENT_TARGET}
        - **Swift Version**: {SWIFT_VERSION}
        - **Bundle ID**: {app_id}
        - **Version**: {version_name}
        - **Build Number**: {build_number}

        ## Support

        - [Capacitor iOS documentation](https://capacitorjs.com/docs/ios)
        - [Apple Developer documentation](https://developer.apple.com/documentation/)
        """
    )
