from __future__ import annotations

import textwrap

NETWORK_SECURITY_CONFIG = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="utf-8"?>
    <network-security-config>
        <!-- Cleartext for local development hosts -->
        <domain-config cleartextTrafficPermitted="true">
            <domain includeSubdomains="true">localhost</domain>
            <domain includeSubdomains="true">10.0.2.2</domain>
            <domain includeSubdomains="true">127.0.0.1</domain>
            <domain includeSubdomains="true">192.168.1.1</domain>
            <domain includeSubdomains="true">192.168.0.1</domain>
        </domain-config>

        <!-- HTTPS-only test domains -->
        <domain-config cleartextTrafficPermitted="false">
            <domain includeSubdomains="true">httpbin.org</domain>
            <domain includeSubdomains="true">google.com</domain>
            <domain includeSubdomains="true">www.google.com</domain>
        </domain-config>

        <base-config cleartextTrafficPermitted="true">
            <trust-anchors>
                <certificates src="system"/>
            </trust-anchors>
        </base-config>
    </network-security-config>
    """
)


def troubleshooting_guide(*, java_home: str, android_home: str = "~/Android/Sdk") -> str:
    return textwrap.dedent(
        f"""\
        # Android Build Troubleshooting Guide

        ## Common Issues and Solutions

        ### 1. APK crashes immediately
        **Cause**: a browser API is used without the matching Capacitor plugin.
        **Solution**:
        - Add `@capacitor/clipboard` and replace `navigator.clipboard` with `Clipboard.write()`
        - Add other Capacitor plugins as needed

        ### 2. Login or API connection issues
        **Cause**: network security configuration or HTTPS problems.
        **Solution**:
        - Check `android/app/src/main/res/xml/network_security_config.xml`
        - Verify the API base URL in your environment variables
        - Test with the `NetworkDebug` component

        ### 3. Build failures
        **Cause**: Java/Gradle version mismatch.
        **Solution**:
        - Install Java 21 and point `org.gradle.java.home` in `gradle.properties` at it
        - Use Gradle 8.13 and AGP 8.12.0
        - Check the `ANDROID_HOME` environment variable

        ### 4. Slow builds
        - Enable parallel builds: `org.gradle.parallel=true`
        - Enable caching: `org.gradle.caching=true`
        - Increase heap size: `org.gradle.jvmargs=-Xmx4g`

        ## Debugging Steps

        1. **Network**: use the NetworkDebug component, test API endpoints manually, verify certificates.
        2. **Build logs**: look for Java version errors, Gradle daemon issues and the SDK location.
        3. **Browser first**: make sure the web app works in a desktop browser.

        ## Environment Setup

        ```bash
        export JAVA_HOME={java_home}
        export ANDROID_HOME={android_home}
        ```

        ```properties
        org.gradle.java.home={java_home}
        org.gradle.parallel=true
        org.gradle.caching=true
        org.gradle.daemon=true
        org.gradle.jvmargs=-Xmx4g -XX:MaxMetaspaceSize=1g
        ```

        Run `deploid debug --debug` to regenerate this guide and the debug component.
        """
    )


NETWORK_DEBUG_COMPONENT = textwrap.dedent(
    """\
    import { useState } from 'react'

    const PROBES: Array<{ label: string; url: string; method: string }> = [
      { label: 'API endpoint', url: 'https://httpbin.org/get', method: 'GET' },
      { label: 'Domain', url: 'https://www.google.com/', method: 'HEAD' },
    ]

    export const NetworkDebug = () => {
      const [testResult, setTestResult] = useState<string>('')
      const [isLoading, setIsLoading] = useState(false)

      const append = (line: string) => setTestResult(prev => prev + line + '\\n')

      const testNetwork = async () => {
        setIsLoading(true)
        setTestResult('Testing network connectivity...\\n')
        try {
          for (const probe of PROBES) {
            append(`Testing ${probe.label}: ${probe.url}`)
            try {
              const response = await fetch(probe.url, { method: probe.method })
              append(`  OK ${response.status} ${response.statusText}`)
            } catch (probeError) {
              const error = probeError as Error
              append(`  FAILED ${error.constructor.name}: ${error.message}`)
            }
          }

          try {
            localStorage.setItem('deploid-test', 'value')
            const retrieved = localStorage.getItem('deploid-test')
            localStorage.removeItem('deploid-test')
            append(`localStorage: ${retrieved === 'value' ? 'OK' : 'FAIL'}`)
          } catch (error) {
            append(`localStorage: ${error}`)
          }

          append('')
          append(`Online: ${navigator.onLine}`)
          append(`Connection: ${(navigator as any).connection?.effectiveType || 'unknown'}`)
          append(`User agent: ${navigator.userAgent}`)
          append(`URL: ${window.location.href}`)
          append(`Is HTTPS: ${window.location.protocol === 'https:'}`)
          append(`Is Android: ${navigator.userAgent.includes('Android')}`)

          try {
            const current = await fetch(window.location.origin, { method: 'HEAD' })
            append(`Current origin: ${current.status}`)
          } catch (originError) {
            append(`Current origin failed: ${(originError as Error).message}`)
          }
        } finally {
          setIsLoading(false)
        }
      }

      return (
        <div className="p-4 bg-gray-800 rounded-lg">
          <h3 className="text-white font-bold mb-2">Network Debug</h3>
          <button
            onClick={testNetwork}
            disabled={isLoading}
            className="bg-blue-600 text-white px-4 py-2 rounded disabled:opacity-50"
          >
            {isLoading ? 'Testing...' : 'Test Network'}
          </button>
          <pre className="text-green-400 text-xs mt-2 whitespace-pre-wrap">{testResult}</pre>
        </div>
      )
    }
    """
)
