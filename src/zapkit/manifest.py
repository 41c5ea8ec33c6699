"""
zapkit.manifest - Template File Manifest
========================================

A categorized list of the paths of the Zap.ts template tree that zapkit
cares about: which plugin owns them, whether they are required, and which
editor they configure.

Files that live inside a plugin's own ``zap/<id>/`` folder do not need an
entry; the pruner removes that folder as a whole. The manifest lists the
files a plugin contributes elsewhere in the tree (pages, API routes,
public assets, emails).

Usage Example
-------------
>>> from zapkit.manifest import files_for_plugin
>>> [e.path for e in files_for_plugin("legal")]
['src/app/(public)/(legal)/']
"""

from __future__ import annotations

from collections.abc import Iterable

from zapkit.models import IDE, FileCategory, FileEntry, FileStatus


def _entries(category: FileCategory, *entries: dict) -> list[FileEntry]:
    return [FileEntry(category=category, **entry) for entry in entries]


def _owned(*plugin_ids: str) -> frozenset[str]:
    return frozenset(plugin_ids)


# =============================================================================
# Manifest
# =============================================================================

FILE_MANIFEST: list[FileEntry] = [
    *_entries(
        FileCategory.CONFIG,
        {"path": "biome.json", "status": FileStatus.ADDED},
        {"path": "tsconfig.json", "status": FileStatus.MODIFIED, "required": True},
        {"path": "package.json", "status": FileStatus.MODIFIED, "required": True},
        {"path": "next.config.ts", "status": FileStatus.MODIFIED, "required": True},
        {"path": "postcss.config.mjs", "status": FileStatus.MODIFIED},
        {"path": "drizzle.config.dev.ts", "status": FileStatus.ADDED, "plugins": _owned("db")},
        {"path": "drizzle.config.prod.ts", "status": FileStatus.ADDED, "plugins": _owned("db")},
        {"path": "next-sitemap.config.js", "status": FileStatus.ADDED},
        {"path": "zap.config.ts", "status": FileStatus.ADDED},
        {"path": "zap.config.types.ts", "status": FileStatus.ADDED},
    ),
    *_entries(
        FileCategory.IDE,
        {"path": ".cursor/", "ide": IDE.CURSOR},
        {"path": ".cursorignore", "ide": IDE.CURSOR},
        {"path": ".github/copilot-instructions.md", "ide": IDE.VSCODE},
        {"path": ".vscode/", "ide": IDE.VSCODE},
        {"path": ".windsurf/", "ide": IDE.WINDSURF},
        {"path": ".zed/", "ide": IDE.ZED},
    ),
    *_entries(
        FileCategory.PUBLIC,
        {"path": "public/", "status": FileStatus.MODIFIED, "required": True},
        {"path": "public/sw.js", "plugins": _owned("pwa")},
        {"path": "public/fonts/", "required": True},
    ),
    *_entries(
        FileCategory.APP,
        {"path": "src/app/favicon.ico", "status": FileStatus.MODIFIED},
        {"path": "src/app/globals.css", "status": FileStatus.MODIFIED, "required": True},
        {"path": "src/app/layout.tsx", "status": FileStatus.MODIFIED, "required": True},
        {"path": "src/app/fonts.ts", "required": True},
        {"path": "src/app/apple-icon.png"},
        {"path": "src/app/icon.png"},
        {"path": "src/app/opengraph-image/route.tsx"},
        {"path": "src/app/manifest.ts", "plugins": _owned("pwa")},
        {"path": "src/app/(public)/page.tsx", "required": True},
        {"path": "src/app/(public)/(auth)/", "plugins": _owned("auth")},
        {"path": "src/app/(public)/(legal)/", "plugins": _owned("legal")},
        {"path": "src/app/(public)/blog/", "plugins": _owned("blog")},
        {"path": "src/app/(public)/waitlist/page.tsx", "plugins": _owned("waitlist")},
        {"path": "src/app/(protected)/app/(sidebar)/", "plugins": _owned("sidebar")},
        {"path": "src/app/(protected)/app/billing/", "plugins": _owned("payments")},
        {"path": "src/middleware.ts", "status": FileStatus.ADDED, "required": True},
        {"path": "src/lib/plugins.ts", "required": True},
    ),
    *_entries(
        FileCategory.API,
        {"path": "src/app/api/(auth-only)/ai/", "plugins": _owned("ai")},
        {"path": "src/app/api/(auth-only)/send-email/", "plugins": _owned("mails")},
        {
            "path": "src/app/api/(auth-only)/user/notifications/",
            "plugins": _owned("pwa"),
        },
        {"path": "src/app/api/auth/[...all]/route.ts", "plugins": _owned("auth")},
        {"path": "src/app/api/rpc/[[...rest]]/route.ts", "required": True},
    ),
    *_entries(
        FileCategory.RPC,
        {"path": "src/rpc/router.ts", "status": FileStatus.ADDED, "required": True},
        {"path": "src/rpc/middlewares.ts", "required": True},
        {"path": "src/rpc/procedures/ai.rpc.ts", "plugins": _owned("ai")},
        {"path": "src/rpc/procedures/feedbacks.rpc.ts", "plugins": _owned("feedbacks")},
        {"path": "src/rpc/procedures/mails.rpc.ts", "plugins": _owned("mails")},
        {"path": "src/rpc/procedures/waitlist.rpc.ts", "plugins": _owned("waitlist")},
        {
            "path": "src/rpc/procedures/push-notifications.rpc.ts",
            "plugins": _owned("pwa"),
        },
    ),
    *_entries(
        FileCategory.HOOKS,
        {"path": "src/hooks/rpc/", "required": True},
        {"path": "src/hooks/ai/", "plugins": _owned("ai")},
        {"path": "src/hooks/feedbacks/", "plugins": _owned("feedbacks")},
        {"path": "src/hooks/pwa/", "plugins": _owned("pwa")},
    ),
    *_entries(
        FileCategory.EMAILS,
        {"path": "emails/", "plugins": _owned("mails")},
    ),
    *_entries(
        FileCategory.DATABASE,
        {"path": "src/db/", "plugins": _owned("db")},
        {"path": "src/db/schema/feedbacks.sql.ts", "plugins": _owned("feedbacks")},
        {"path": "src/db/schema/waitlist.sql.ts", "plugins": _owned("waitlist")},
        {"path": "src/db/schema/push-notifications.sql.ts", "plugins": _owned("pwa")},
        {"path": "src/db/schema/ai.sql.ts", "plugins": _owned("ai")},
    ),
    *_entries(
        FileCategory.ZAP,
        {"path": "zap/blog/content/", "plugins": _owned("blog", "markdown")},
    ),
]


# =============================================================================
# Queries
# =============================================================================

def files_for_plugin(plugin_id: str, manifest: Iterable[FileEntry] = FILE_MANIFEST) -> list[FileEntry]:
    """Entries owned (possibly jointly) by one plugin, in manifest order."""
    return [entry for entry in manifest if plugin_id in entry.plugins]


def files_for_plugins(
    plugin_ids: Iterable[str],
    manifest: Iterable[FileEntry] = FILE_MANIFEST,
) -> list[FileEntry]:
    """
    Entries owned by any of the given plugins, in manifest order, without
    duplicates.

    Parameters
    ----------
    plugin_ids : Iterable[str]
        Plugins to collect files for.

    manifest : Iterable[FileEntry]
        Manifest to search. Defaults to the built-in one.

    Returns
    -------
    list[FileEntry]
        Matching entries.
    """
    wanted = set(plugin_ids)
    return [entry for entry in manifest if entry.plugins & wanted]


def ide_files(manifest: Iterable[FileEntry] = FILE_MANIFEST) -> list[FileEntry]:
    """Editor configuration entries."""
    return [entry for entry in manifest if entry.ide is not None]
