"""Package script alias resolution.

``npm run build`` means whatever ``scripts.build`` in the nearest
package.json says. The resolver finds that underlying command so the
layered classifier can classify it instead of the alias. It never
classifies anything itself.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from smart_approve.exceptions import ManifestError
from smart_approve.logging import Loggers

logger = Loggers.shell()

MANIFEST_NAME = "package.json"
MAX_MANIFEST_LEVELS = 10

_RUN_SCRIPT = re.compile(r"^(?:npm|pnpm|yarn|bun)\s+(?:run|run-script)\s+(?:--\S+\s+)*([^\s-][^\s]*)")
_NPM_SHORTHAND = re.compile(r"^npm\s+(test|start|stop|restart)\b")
_BARE_SCRIPT = re.compile(r"^(yarn|pnpm|bun)\s+([^\s-][^\s]*)")

# Subcommands the tool handles itself instead of running a script
BUILTIN_VERBS: dict[str, frozenset[str]] = {
    "yarn": frozenset(
        {
            "add", "audit", "autoclean", "bin", "cache", "check", "config", "create",
            "dedupe", "dlx", "exec", "explain", "generate-lock-entry", "global", "help",
            "import", "info", "init", "install", "licenses", "link", "list", "login",
            "logout", "node", "outdated", "owner", "pack", "patch", "plugin", "policies",
            "publish", "rebuild", "remove", "run", "set", "tag", "team", "unlink",
            "unplug", "up", "upgrade", "upgrade-interactive", "version", "versions",
            "why", "workspace", "workspaces",
        }
    ),
    "pnpm": frozenset(
        {
            "add", "audit", "bin", "create", "dedupe", "deploy", "dlx", "doctor", "env",
            "exec", "fetch", "i", "import", "init", "install", "install-test", "licenses",
            "link", "list", "ln", "ls", "outdated", "pack", "patch", "patch-commit",
            "prune", "publish", "rebuild", "recursive", "remove", "rm", "root", "run",
            "server", "setup", "store", "un", "uninstall", "unlink", "up", "update",
            "why", "config", "cache", "help",
        }
    ),
    "bun": frozenset(
        {
            "add", "build", "create", "exec", "i", "init", "install", "link", "outdated",
            "patch", "pm", "publish", "remove", "repl", "rm", "run", "test", "unlink",
            "update", "upgrade", "x", "why", "audit", "info", "help",
        }
    ),
}


@dataclass(frozen=True)
class ResolvedAlias:
    """An alias expanded to the command it stands for."""

    name: str
    command: str
    manifest_dir: Path


def extract_alias(command: str) -> str | None:
    """Return the package script name a command runs, or None.

    Explicit ``run NAME`` always names a script. A bare ``yarn NAME`` (or
    pnpm/bun) names one only when NAME is not a builtin verb of that tool.
    """
    command = command.strip()

    match = _RUN_SCRIPT.match(command)
    if match:
        return match.group(1)

    match = _NPM_SHORTHAND.match(command)
    if match:
        return match.group(1)

    match = _BARE_SCRIPT.match(command)
    if match:
        tool, name = match.group(1), match.group(2)
        if name not in BUILTIN_VERBS[tool]:
            return name
    return None


def find_manifest(cwd: str | Path, max_levels: int = MAX_MANIFEST_LEVELS) -> Path | None:
    """Find the nearest package.json at or above cwd.

    Searches cwd itself and at most ``max_levels`` ancestors.
    """
    directory = Path(cwd).expanduser().resolve()
    for _ in range(max_levels + 1):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
        if directory.parent == directory:
            break
        directory = directory.parent
    return None


def load_scripts(manifest: Path) -> dict[str, Any]:
    """Return the ``scripts`` mapping of a manifest.

    Raises:
        ManifestError: If the manifest cannot be read or parsed.
    """
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"Cannot parse {manifest}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"{manifest} is not a JSON object")
    scripts = data.get("scripts") or {}
    if not isinstance(scripts, dict):
        raise ManifestError(f"{manifest} has a non-object 'scripts' field")
    return scripts


class AliasResolver:
    """Looks up package script aliases in the nearest manifest."""

    def __init__(self, max_levels: int = MAX_MANIFEST_LEVELS):
        self.max_levels = max_levels

    def resolve(self, script_name: str, cwd: str | Path) -> ResolvedAlias | None:
        """Expand a script name to its underlying command.

        Package managers run ``pre<name>`` before and ``post<name>`` after
        the script when the manifest defines them, so those are chained
        around it with ``&&``. They are chained for every tool, including
        ones that skip such hooks.

        Returns None when there is no manifest, the manifest is unusable,
        or it defines no such script.
        """
        manifest = find_manifest(cwd, self.max_levels)
        if manifest is None:
            return None

        try:
            scripts = load_scripts(manifest)
        except ManifestError as e:
            logger.warning("manifest_unreadable", manifest=str(manifest), error=str(e))
            return None

        underlying = _script_body(scripts, script_name)
        if underlying is None:
            return None

        chain = [
            body
            for body in (
                _script_body(scripts, f"pre{script_name}"),
                underlying,
                _script_body(scripts, f"post{script_name}"),
            )
            if body is not None
        ]
        return ResolvedAlias(
            name=script_name,
            command=" && ".join(chain),
            manifest_dir=manifest.parent,
        )


def _script_body(scripts: dict[str, Any], name: str) -> str | None:
    body = scripts.get(name)
    if not isinstance(body, str) or not body.strip():
        return None
    return body.strip()
