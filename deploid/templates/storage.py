from __future__ import annotations

import textwrap

PREFERENCES_PACKAGE = "@capacitor/preferences"
PREFERENCES_VERSION = "^6.0.0"

STORAGE_TS = textwrap.dedent(
    """\
    /**
     * Cross-platform key/value storage.
     * localStorage on the web, Capacitor Preferences inside the native shell.
     */

    import { Preferences } from '@capacitor/preferences'

    export type StorageKey =
      | 'theme'
      | 'locale'
      | 'pushToken'
      | 'pushPromptDismissed'
      | 'userPreferences'
      | 'offlineData'
      | 'user'
      | 'accessToken'

    export interface StorageAdapter {
      getItem(key: string): Promise<string | null>
      setItem(key: string, value: string): Promise<void>
      removeItem(key: string): Promise<void>
      clear(): Promise<void>
    }

    class WebStorageAdapter implements StorageAdapter {
      async getItem(key: string) {
        return typeof window === 'undefined' ? null : localStorage.getItem(key)
      }
      async setItem(key: string, value: string) {
        if (typeof window !== 'undefined') localStorage.setItem(key, value)
      }
      async removeItem(key: string) {
        if (typeof window !== 'undefined') localStorage.removeItem(key)
      }
      async clear() {
        if (typeof window !== 'undefined') localStorage.clear()
      }
    }

    class NativeStorageAdapter implements StorageAdapter {
      async getItem(key: string) {
        try {
          return (await Preferences.get({ key })).value
        } catch {
          return null
        }
      }
      async setItem(key: string, value: string) {
        await Preferences.set({ key, value })
      }
      async removeItem(key: string) {
        await Preferences.remove({ key })
      }
      async clear() {
        await Preferences.clear()
      }
    }

    export function isNativeEnvironment(): boolean {
      return typeof window !== 'undefined' && (window as any).Capacitor !== undefined
    }

    const storage: StorageAdapter = isNativeEnvironment()
      ? new NativeStorageAdapter()
      : new WebStorageAdapter()

    export const crossPlatformStorage = {
      async get<T = string>(key: StorageKey): Promise<T | null> {
        const value = await storage.getItem(key)
        if (value === null) return null
        try {
          return JSON.parse(value) as T
        } catch {
          return value as unknown as T
        }
      },

      async set<T>(key: StorageKey, value: T): Promise<void> {
        const serialized = typeof value === 'string' ? value : JSON.stringify(value)
        await storage.setItem(key, serialized)
      },

      async remove(key: StorageKey): Promise<void> {
        await storage.removeItem(key)
      },

      async clear(): Promise<void> {
        await storage.clear()
      },

      isAvailable(): boolean {
        return isNativeEnvironment() || typeof localStorage !== 'undefined'
      },
    }
    """
)

SECURE_STORAGE_TS = textwrap.dedent(
    """\
    /**
     * Storage for sensitive values such as auth tokens.
     * sessionStorage on the web, prefixed Capacitor Preferences on device.
     */

    import { Preferences } from '@capacitor/preferences'
    import { isNativeEnvironment } from './storage'

    const PREFIX = 'secure_'

    export const secureStorageUtil = {
      async get<T = string>(key: string): Promise<T | null> {
        const raw = isNativeEnvironment()
          ? (await Preferences.get({ key: PREFIX + key })).value
          : typeof window === 'undefined'
            ? null
            : sessionStorage.getItem(key)
        if (raw === null) return null
        try {
          return JSON.parse(raw) as T
        } catch {
          return raw as unknown as T
        }
      },

      async set<T>(key: string, value: T): Promise<void> {
        const serialized = typeof value === 'string' ? value : JSON.stringify(value)
        if (isNativeEnvironment()) {
          await Preferences.set({ key: PREFIX + key, value: serialized })
        } else if (typeof window !== 'undefined') {
          sessionStorage.setItem(key, serialized)
        }
      },

      async remove(key: string): Promise<void> {
        if (isNativeEnvironment()) {
          await Preferences.remove({ key: PREFIX + key })
        } else if (typeof window !== 'undefined') {
          sessionStorage.removeItem(key)
        }
      },

      isAvailable(): boolean {
        return isNativeEnvironment() || typeof sessionStorage !== 'undefined'
      },
    }
    """
)

STORAGE_MIGRATION_TS = textwrap.dedent(
    """\
    /**
     * Moves values written directly to localStorage into crossPlatformStorage.
     * Call once on app startup.
     */

    import { crossPlatformStorage, StorageKey } from './storage'

    const MIGRATIONS: Array<[legacyKey: string, key: StorageKey]> = [
      ['theme', 'theme'],
      ['i18nextLng', 'locale'],
      ['pushToken', 'pushToken'],
      ['pushNotificationPromptDismissed', 'pushPromptDismissed'],
    ]

    export async function migrateStorageData(): Promise<void> {
      if (typeof window === 'undefined') return
      for (const [legacyKey, key] of MIGRATIONS) {
        const value = localStorage.getItem(legacyKey)
        if (value === null) continue
        await crossPlatformStorage.set(key, value)
        if (legacyKey !== key) localStorage.removeItem(legacyKey)
      }
    }
    """
)

STORAGE_FILES: dict[str, str] = {
    "storage.ts": STORAGE_TS,
    "secureStorage.ts": SECURE_STORAGE_TS,
    "storageMigration.ts": STORAGE_MIGRATION_TS,
}

STORAGE_GUIDE = textwrap.dedent(
    """\
    # Cross-Platform Storage Guide

    This project includes storage utilities that work the same in a browser and
    inside the native Capacitor shell.

    ## What's included

    - `src/lib/storage.ts`: general key/value storage (`crossPlatformStorage`)
    - `src/lib/secureStorage.ts`: storage for sensitive values (`secureStorageUtil`)
    - `src/lib/storageMigration.ts`: one-time migration from raw `localStorage`

    ## Quick start

    ```typescript
    import { crossPlatformStorage } from './lib/storage'

    await crossPlatformStorage.set('theme', 'dark')
    await crossPlatformStorage.set('userPreferences', { notifications: true })
    const theme = await crossPlatformStorage.get('theme')
    ```

    ```typescript
    import { secureStorageUtil } from './lib/secureStorage'

    await secureStorageUtil.set('authToken', 'secret-token')
    const token = await secureStorageUtil.get('authToken')
    ```

    ```typescript
    import { migrateStorageData } from './lib/storageMigration'

    await migrateStorageData()
    ```

    ## Environment detection

    - **Web**: `localStorage` (general) and `sessionStorage` (secure)
    - **Native**: Capacitor Preferences

    ## Data classification

    Use `crossPlatformStorage` for theme, locale, UI state and other non-sensitive
    preferences. Use `secureStorageUtil` for auth tokens and session data, and
    clear both on logout. Prefer HTTP-only cookies for refresh tokens.

    ## Further reading

    - [Capacitor Preferences](https://capacitorjs.com/docs/apis/preferences)
    - [Web Storage API](https://developer.mozilla.org/en-US/docs/Web/API/Web_Storage_API)
    """
)
