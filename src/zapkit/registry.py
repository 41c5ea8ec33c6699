"""
zapkit.registry - Static Plugin Registry
========================================

Every feature module of the Zap.ts template, as a flat table of
:class:`~zapkit.models.Plugin` records keyed by id. The registry is data:
there is no class per plugin and no inheritance between plugin kinds.

Core plugins are part of every project. Optional plugins are offered to
the user; the ones that end up outside the effective set (see
:mod:`zapkit.resolver`) are pruned from the copied template.

Requirement edges (``required_plugins``) must form a DAG over known ids.
:func:`validate_registry` checks this; the CLI runs it before resolving.

Usage Example
-------------
>>> from zapkit.registry import PLUGINS, optional_plugin_ids
>>> PLUGINS["blog"].required_plugins
frozenset({'markdown'})
>>> "db" in optional_plugin_ids()
False
"""

from __future__ import annotations

from collections.abc import Mapping

from zapkit.exceptions import RegistryError
from zapkit.models import Plugin


# =============================================================================
# Plugin Table
# =============================================================================

_PLUGIN_LIST: list[Plugin] = [
    # -------------------------------------------------------------------------
    # Core plugins (always kept)
    # -------------------------------------------------------------------------
    Plugin(
        id="api",
        label="API",
        description="Typed RPC API using oRPC.",
        core=True,
        dependencies=frozenset({"@orpc/client", "@orpc/server", "@orpc/react-query"}),
    ),
    Plugin(
        id="auth",
        label="Authentication",
        description="Authentication with Better Auth.",
        core=True,
        dependencies=frozenset({"better-auth", "@polar-sh/better-auth", "@polar-sh/sdk"}),
        env=("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"),
    ),
    Plugin(
        id="components",
        label="Components",
        description="Extra UI hooks and utilities for shadcn/ui.",
        core=True,
        dependencies=frozenset({"clsx", "tailwind-merge", "class-variance-authority"}),
    ),
    Plugin(
        id="crypto",
        label="Crypto",
        description="Cryptographic helpers and utilities.",
        core=True,
    ),
    Plugin(
        id="db",
        label="Database",
        description="Database integration via Drizzle ORM & PostgreSQL.",
        core=True,
        dependencies=frozenset({"drizzle-orm", "pg", "@neondatabase/serverless"}),
        dev_dependencies=frozenset({"drizzle-kit"}),
    ),
    Plugin(
        id="env",
        label="Environment",
        description="Environment management via dotenv.",
        core=True,
        dependencies=frozenset({"dotenv"}),
    ),
    Plugin(
        id="errors",
        label="Error Handling",
        description="Error boundary & toast system.",
        core=True,
        dependencies=frozenset({"sonner", "zod"}),
    ),
    Plugin(
        id="plugins",
        label="Plugins",
        description="Zap.ts plugin system bootstrap.",
        core=True,
    ),
    # -------------------------------------------------------------------------
    # Optional plugins
    # -------------------------------------------------------------------------
    Plugin(
        id="ai",
        label="AI",
        description="Integrates AI SDKs such as OpenAI and Mistral.",
        dependencies=frozenset({"ai", "@ai-sdk/openai", "@ai-sdk/mistral", "@ai-sdk/react"}),
        env=("OPENAI_API_KEY", "MISTRAL_API_KEY"),
    ),
    Plugin(
        id="analytics",
        label="Analytics",
        description="Adds analytics providers like Vercel, PostHog, etc.",
        dependencies=frozenset({
            "@vercel/analytics",
            "@vercel/speed-insights",
            "posthog-js",
            "posthog-node",
        }),
        env=("NEXT_PUBLIC_POSTHOG_KEY", "NEXT_PUBLIC_POSTHOG_HOST"),
    ),
    Plugin(
        id="blog",
        label="Blog",
        description="Static/dynamic blog with MDX support.",
        dependencies=frozenset({
            "next-mdx-remote",
            "gray-matter",
            "@mdx-js/react",
            "@mdx-js/loader",
        }),
        required_plugins=frozenset({"markdown"}),
    ),
    Plugin(
        id="feedbacks",
        label="Feedback",
        description="Collect feedback from users.",
    ),
    Plugin(
        id="flags",
        label="Feature Flags",
        description="Feature flagging with Flags SDK + PostHog.",
        dependencies=frozenset({"flags", "@flags-sdk/posthog"}),
        required_plugins=frozenset({"analytics"}),
        env=("FLAGS_SECRET",),
    ),
    Plugin(
        id="landing",
        label="Landing",
        description="Public landing page template.",
        required_plugins=frozenset({"legal"}),
    ),
    Plugin(
        id="legal",
        label="Legal",
        description="Cookie, privacy, terms of service pages.",
    ),
    Plugin(
        id="mails",
        label="Emails",
        description="Email templates with React Email & Resend.",
        dependencies=frozenset({"@react-email/components", "react-email", "resend"}),
        dev_dependencies=frozenset({"@react-email/preview-server"}),
        package_json_scripts=frozenset({"email:dev"}),
        env=("RESEND_API_KEY",),
    ),
    Plugin(
        id="markdown",
        label="Markdown",
        description="Markdown rendering with syntax highlighting.",
        dependencies=frozenset({"react-syntax-highlighter", "gray-matter"}),
    ),
    Plugin(
        id="payments",
        label="Payments",
        description="Billing & payments with Polar SDK.",
        dependencies=frozenset({"@polar-sh/sdk", "@polar-sh/better-auth"}),
        env=("POLAR_ACCESS_TOKEN", "POLAR_WEBHOOK_SECRET"),
    ),
    Plugin(
        id="pwa",
        label="Progressive Web App",
        description="Service worker, manifest, push notifications.",
        dependencies=frozenset({"web-push"}),
        dev_dependencies=frozenset({"@types/web-push"}),
        env=("NEXT_PUBLIC_VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY"),
    ),
    Plugin(
        id="sidebar",
        label="Sidebar Layout",
        description="Authenticated app layout with sidebar.",
    ),
    Plugin(
        id="waitlist",
        label="Waitlist",
        description="Waitlist page + middleware integration.",
        required_plugins=frozenset({"mails"}),
    ),
]

PLUGINS: dict[str, Plugin] = {plugin.id: plugin for plugin in _PLUGIN_LIST}


# =============================================================================
# Queries
# =============================================================================

def get_plugin(plugin_id: str, registry: Mapping[str, Plugin] = PLUGINS) -> Plugin:
    """
    Look up a plugin by id.

    Raises
    ------
    KeyError
        If no plugin has this id.
    """
    return registry[plugin_id]


def core_plugin_ids(registry: Mapping[str, Plugin] = PLUGINS) -> frozenset[str]:
    """Ids of the plugins that are part of every project."""
    return frozenset(pid for pid, plugin in registry.items() if plugin.core)


def optional_plugin_ids(registry: Mapping[str, Plugin] = PLUGINS) -> frozenset[str]:
    """Ids of the plugins the user may select (and that may be pruned)."""
    return frozenset(pid for pid, plugin in registry.items() if not plugin.core)


# =============================================================================
# Validation
# =============================================================================

def find_cycle(registry: Mapping[str, Plugin]) -> list[str] | None:
    """
    Find one cycle among ``required_plugins`` edges.

    Edges to unknown ids are ignored here; :func:`validate_registry`
    reports them separately.

    Parameters
    ----------
    registry : Mapping[str, Plugin]
        Plugin table to inspect.

    Returns
    -------
    list[str] | None
        The cycle as a path that starts and ends on the same id
        (e.g. ``['a', 'b', 'a']``), or None if the graph is acyclic.
    """
    # 0 = unvisited, 1 = on the current path, 2 = done
    state: dict[str, int] = {pid: 0 for pid in registry}

    for start in sorted(registry):
        if state[start]:
            continue

        path: list[str] = [start]
        stack = [iter(sorted(registry[start].required_plugins))]
        state[start] = 1

        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                state[path.pop()] = 2
                continue
            if nxt not in registry:
                continue
            if state[nxt] == 1:
                return [*path[path.index(nxt):], nxt]
            if state[nxt] == 0:
                state[nxt] = 1
                path.append(nxt)
                stack.append(iter(sorted(registry[nxt].required_plugins)))

    return None


def validate_registry(registry: Mapping[str, Plugin] = PLUGINS) -> None:
    """
    Reject configuration errors in a plugin table.

    Checks that every key matches its plugin's id, that every required
    plugin exists, and that requirement edges contain no cycle.

    Raises
    ------
    RegistryError
        On the first class of problem found, listing every instance of it.
    """
    mismatched = sorted(key for key, plugin in registry.items() if key != plugin.id)
    if mismatched:
        msg = f"Registry keys do not match plugin ids: {', '.join(mismatched)}"
        raise RegistryError(msg)

    dangling = sorted(
        f"{pid} -> {req}"
        for pid, plugin in registry.items()
        for req in plugin.required_plugins
        if req not in registry
    )
    if dangling:
        msg = f"Plugins require unknown plugins: {', '.join(dangling)}"
        raise RegistryError(msg)

    cycle = find_cycle(registry)
    if cycle is not None:
        msg = f"Plugin requirements contain a cycle: {' -> '.join(cycle)}"
        raise RegistryError(msg)
