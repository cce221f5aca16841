"""Static analysis of scripts run through an interpreter.

Commands like ``node build.mjs`` or ``python tools/report.py`` say nothing
about their effect on the command line; the script decides. The analyzer
reads the entry script plus every local file it includes and looks for
side-effect idioms of the script's language (file writes, process spawns,
mutating HTTP calls, process termination, shell redirections).

This is a heuristic. It never executes anything and only ever answers
readonly when no known idiom appears anywhere in the collected corpus.
"""

import re
from pathlib import Path

from smart_approve.logging import Loggers
from smart_approve.shell.models import Classification

logger = Loggers.shell()

# Limits on the include graph walk
MAX_FILES = 50
MAX_BYTES = 1_000_000


# The script path ends at whitespace or the end of the command
_END = r"(?=\s|$)"

# "interpreter invoked on a local file" shapes; group 1 is the path
_SCRIPT_COMMANDS: list[re.Pattern[str]] = [
    re.compile(
        r"^node\s+(?!-e\b|--eval\b|-p\b|--print\b|-v\b|--version\b)"
        r"[\"']?([^\s\"']+\.[cm]?[jt]sx?)[\"']?" + _END
    ),
    re.compile(r"^python3?\s+(?!-c\b|--version\b|-m\b|-V\b)[\"']?([^\s\"']+\.pyw?)[\"']?" + _END),
    re.compile(r"^(?:ba|z|da)?sh\s+[\"']?([^\s\"']+\.(?:sh|bash|zsh))[\"']?" + _END),
    re.compile(r"^(?:pwsh|powershell)(?:\.exe)?\b.*?(?:-File\s+)?[\"']?([^\s\"']+\.ps1)[\"']?" + _END, re.IGNORECASE),
    re.compile(r"^(?:tsx|ts-node|npx\s+(?:tsx|ts-node))\s+[\"']?([^\s\"']+\.[cm]?tsx?)[\"']?" + _END),
]

_LANGUAGES = {
    ".js": "js",
    ".mjs": "js",
    ".cjs": "js",
    ".jsx": "js",
    ".ts": "js",
    ".mts": "js",
    ".cts": "js",
    ".tsx": "js",
    ".py": "py",
    ".pyw": "py",
    ".sh": "sh",
    ".bash": "sh",
    ".zsh": "sh",
    ".ps1": "sh",
    ".bat": "sh",
    ".cmd": "sh",
}

# fs functions that write, delete or move files
_JS_FS_MUTATORS = (
    r"writeFile|appendFile|mkdir|mkdtemp|rmdir|rm|unlink|rename|copyFile|cp|symlink|link|"
    r"truncate|chmod|chown|lchown|utimes|createWriteStream|outputFile|outputJson|writeJson|"
    r"emptyDir|ensureDir|ensureFile"
)

# Side-effect idioms per language
SIDE_EFFECT_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "js": [
        re.compile(
            r"\bfs(?:\.promises)?\.(?:writeFile|appendFile|mkdir|mkdtemp|rmdir|rm|unlink|rename|"
            r"copyFile|cp|symlink|link|truncate|chmod|chown|utimes|createWriteStream|open)(?:Sync)?\b"
        ),
        # Calls on any receiver (fsp.rm, fse.outputFile) and bare named-import calls
        re.compile(rf"(?<![\w$])(?:{_JS_FS_MUTATORS})(?:Sync)?\s*\("),
        re.compile(
            r"\{[^}]*\b(?:" + _JS_FS_MUTATORS + r")(?:Sync)?\b[^}]*\}\s*"
            r"""(?:from\s*|=\s*require\s*\(\s*)['"](?:node:)?fs(?:/promises)?['"]"""
        ),
        re.compile(r"\bchild_process\.(?:exec|execSync|spawn|spawnSync|execFile|execFileSync|fork)\b"),
        re.compile(r"""\b(?:require\s*\(\s*|from\s+|import\s*\(\s*)['"](?:node:)?child_process['"]"""),
        re.compile(r"""\b(?:require\s*\(\s*|from\s+)['"](?:execa|shelljs|zx|rimraf|fs-extra|del|graceful-fs|mkdirp|make-dir)['"]"""),
        re.compile(r"""\bfetch\s*\([^)]*method\s*:\s*['"`](?:POST|PUT|DELETE|PATCH)""", re.IGNORECASE),
        re.compile(r"\baxios\.(?:post|put|delete|patch)\s*\("),
        re.compile(r"\bprocess\.(?:exit|kill|chdir)\b"),
        re.compile(r"\b(?:Deno\.(?:writeTextFile|writeFile|remove|mkdir|rename|run|Command)|Bun\.(?:write|spawn|spawnSync))\b"),
    ],
    "py": [
        re.compile(r"""\bopen\s*\([^)]*['"][rbt]*[wax+][rbt+]*['"]"""),
        re.compile(r"""\bopen\s*\([^)]*\bmode\s*=\s*['"][rbt]*[wax+]"""),
        re.compile(r"(?<!stdout)(?<!stderr)\.(?:write|writelines)\s*\("),
        re.compile(
            r"\bos\.(?:remove|unlink|rename|renames|replace|mkdir|makedirs|rmdir|removedirs|"
            r"system|popen|kill|killpg|chmod|chown|symlink|link|truncate|exec\w*|spawn\w*)\b"
        ),
        re.compile(r"\bshutil\.(?:copy|copy2|copyfile|copytree|move|rmtree|chown|make_archive|unpack_archive)\b"),
        re.compile(r"\bsubprocess\.(?:run|call|Popen|check_call|check_output|getoutput|getstatusoutput)\b"),
        re.compile(r"\.(?:write_text|write_bytes|touch|unlink|rmdir|mkdir|symlink_to|hardlink_to)\s*\("),
        re.compile(r"\b(?:requests|httpx|session|client)\.(?:post|put|delete|patch)\s*\("),
        re.compile(r"^\s*(?:import|from)\s+(?:subprocess|shutil)\b", re.MULTILINE),
        re.compile(
            r"^\s*from\s+os\s+import\s+[^\n]*\b(?:remove|unlink|rename|renames|replace|mkdir|makedirs|"
            r"rmdir|removedirs|system|popen|kill|killpg|chmod|chown|symlink|link|truncate|exec\w*|spawn\w*)\b",
            re.MULTILINE,
        ),
        # import os as o; o.remove(...)
        re.compile(r"^\s*import\s+os\s+as\s+\w+", re.MULTILINE),
    ],
    "sh": [
        re.compile(r"(?<![<>=-])(?:\d|&)?>>?(?![>&=])\s*(?!/dev/(?:null|stdout|stderr|tty)\b)[^\s&|;]"),
        re.compile(
            r"(?<![\w./-])(?:rm|rmdir|mv|cp|mkdir|touch|chmod|chown|ln|dd|tee|truncate|shred|"
            r"kill|pkill|killall|install|unlink|rimraf)(?![\w.-])"
        ),
        re.compile(r"(?<![\w-])find\b[^\n]*\s-(?:delete|exec|execdir|ok|okdir)\b"),
        re.compile(r"(?<![\w-])sed\s+(?:-\w+\s+)*-[a-zA-Z]*i"),
        re.compile(r"\bcurl\b.*(?:-X\s*['\"]?(?:POST|PUT|DELETE|PATCH)|\s-d\s|--data|--upload-file|\s-[oOT]\s)"),
        re.compile(r"(?<![\w-])(?:wget|scp|rsync)\b"),
        re.compile(r"\b(?:npm|pnpm|yarn|pip3?|brew|apt-get|apt)\s+(?:install|add|remove|uninstall)\b"),
        re.compile(r"\bgit\s+(?:push|reset|clean|checkout|rebase|merge|commit|rm|mv)\b"),
        re.compile(r"(?i)\b(?:Remove-Item|Move-Item|Copy-Item|New-Item|Set-Content|Add-Content|Out-File|Stop-Process)\b"),
        re.compile(r"(?i)^\s*(?:del|erase|rd|move|copy|xcopy|mkdir|md)\s", re.MULTILINE),
    ],
}

# Local include forms; group 1 is the included path or module
_JS_IMPORTS = [
    re.compile(r"""\brequire\s*\(\s*['"](\.[^'"]+)['"]\s*\)"""),
    re.compile(r"""\b(?:import|export)\s[^'"]*?\bfrom\s+['"](\.[^'"]+)['"]"""),
    re.compile(r"""\bimport\s+['"](\.[^'"]+)['"]"""),
    re.compile(r"""\bimport\s*\(\s*['"](\.[^'"]+)['"]\s*\)"""),
]
_PY_FROM_IMPORT = re.compile(r"^\s*from\s+(\.*[\w.]*)\s+import\s+([\w\s,()*]+)", re.MULTILINE)
_PY_IMPORT = re.compile(r"^\s*import\s+([\w.]+(?:\s*,\s*[\w.]+)*)", re.MULTILINE)
_SH_SOURCE = re.compile(r"""(?:^|[;&|]\s*)(?:source|\.)\s+['"]?([^\s'";|&]+)""", re.MULTILINE)

_JS_EXTENSIONS = (".js", ".mjs", ".cjs", ".ts", ".mts", ".cts", ".jsx", ".tsx")


def extract_script_path(command: str) -> str | None:
    """Return the script file a command runs, or None.

    Recognizes ``node FILE``, ``python[3] FILE.py``, ``bash|sh|zsh FILE.sh``,
    ``pwsh|powershell [-File] FILE.ps1`` and ``tsx|ts-node|npx tsx FILE.ts``.
    Inline evaluation and version flags are not script runs.
    """
    command = command.strip()
    for pattern in _SCRIPT_COMMANDS:
        match = pattern.match(command)
        if match:
            return match.group(1)
    return None


def source_language(path: str | Path) -> str | None:
    """Map a file extension to "js", "py" or "sh"."""
    return _LANGUAGES.get(Path(path).suffix.lower())


def resolve_script_path(script: str, cwd: str | Path | None) -> Path:
    """Resolve a script path against the working directory."""
    path = Path(script).expanduser()
    if path.is_absolute() or not cwd:
        return path.resolve()
    return (Path(cwd) / path).resolve()


class ScriptAnalyzer:
    """Classifies scripts by scanning their source and local includes."""

    def __init__(self, max_files: int = MAX_FILES, max_bytes: int = MAX_BYTES):
        self.max_files = max_files
        self.max_bytes = max_bytes

    def analyze(self, script: str, cwd: str | Path | None) -> Classification:
        """Classify the script a command runs.

        Args:
            script: Script path as written on the command line.
            cwd: Working directory the command runs in.

        Returns:
            MODIFYING if any side-effect idiom appears in the script or its
            local includes, READONLY if none does, AMBIGUOUS when the script
            cannot be read or its language is unknown.
        """
        path = resolve_script_path(script, cwd)
        language = source_language(path)
        if language is None or not path.is_file():
            return Classification.AMBIGUOUS

        sources = self.collect_sources(path, language)
        if not sources:
            return Classification.AMBIGUOUS

        corpus = "\n".join(sources.values())
        for pattern in SIDE_EFFECT_PATTERNS[language]:
            if pattern.search(corpus):
                logger.debug(
                    "script_side_effect",
                    script=str(path),
                    pattern=pattern.pattern,
                    files=len(sources),
                )
                return Classification.MODIFYING

        logger.debug("script_readonly", script=str(path), files=len(sources))
        return Classification.READONLY

    def collect_sources(self, entry: Path, language: str) -> dict[Path, str]:
        """Read the entry file and every local file reachable from it.

        Walks the include graph breadth-first with a visited set, stopping
        at the file-count and byte caps. Unreadable includes are skipped;
        an unreadable entry yields an empty mapping.
        """
        sources: dict[Path, str] = {}
        visited: set[Path] = set()
        queue = [entry]
        total = 0

        while queue and len(sources) < self.max_files and total < self.max_bytes:
            path = queue.pop(0)
            if path in visited:
                continue
            visited.add(path)

            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue

            text = text[: self.max_bytes - total]
            sources[path] = text
            total += len(text)

            for include in self._local_includes(path, text, language):
                if include not in visited:
                    queue.append(include)

        return sources

    def read_excerpt(
        self, script: str, cwd: str | Path | None, limit: int
    ) -> str | None:
        """Return at most ``limit`` characters of a script, or None."""
        path = resolve_script_path(script, cwd)
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                return f.read(limit)
        except OSError:
            return None

    def _local_includes(self, path: Path, text: str, language: str) -> list[Path]:
        if language == "js":
            return _js_includes(path.parent, text)
        if language == "py":
            return _py_includes(path.parent, text)
        return _sh_includes(path.parent, text)


def _js_includes(directory: Path, text: str) -> list[Path]:
    found = []
    for pattern in _JS_IMPORTS:
        for match in pattern.finditer(text):
            resolved = _resolve_js_import(directory, match.group(1))
            if resolved is not None:
                found.append(resolved)
    return found


def _resolve_js_import(directory: Path, specifier: str) -> Path | None:
    base = (directory / specifier).resolve()
    candidates = [base]
    candidates += [base.with_name(base.name + ext) for ext in _JS_EXTENSIONS]
    candidates += [base / f"index{ext}" for ext in _JS_EXTENSIONS]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _py_includes(directory: Path, text: str) -> list[Path]:
    found = []

    for match in _PY_FROM_IMPORT.finditer(text):
        module, names = match.group(1), match.group(2)
        dots = len(module) - len(module.lstrip("."))
        base = directory
        for _ in range(max(dots - 1, 0)):
            base = base.parent
        dotted = module.lstrip(".")
        if dotted:
            found += _py_module_files(base, dotted)
        elif dots:
            # from . import a, b
            for name in re.findall(r"\w+", names):
                found += _py_module_files(base, name)

    for match in _PY_IMPORT.finditer(text):
        for module in re.split(r"\s*,\s*", match.group(1)):
            found += _py_module_files(directory, module)

    return found


def _py_module_files(base: Path, dotted: str) -> list[Path]:
    target = base.joinpath(*dotted.split("."))
    for candidate in (target.with_name(target.name + ".py"), target / "__init__.py"):
        if candidate.is_file():
            return [candidate.resolve()]
    return []


def _sh_includes(directory: Path, text: str) -> list[Path]:
    found = []
    for match in _SH_SOURCE.finditer(text):
        candidate = Path(match.group(1)).expanduser()
        if not candidate.is_absolute():
            candidate = directory / candidate
        if candidate.is_file():
            found.append(candidate.resolve())
    return found
