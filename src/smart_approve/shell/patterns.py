"""Pattern tables for rule-based command classification.

Each table is an ordered list of ``(regex, domain, description)`` entries,
applied to one atomic sub-command at a time. Modifying rules always win
over readonly rules; a sub-command that matches neither is ambiguous.

Git staging operations (add, commit, stash, fetch, restore --staged) are
deliberately in the readonly table: they only touch local state that is
easy to undo.
"""

import re

from smart_approve.shell.models import Domain, PatternRule, RuleCategory

# Global options git accepts before the subcommand
_GIT = r"^git\s+(?:(?:-C|-c)\s+\S+\s+|--no-pager\s+|--(?:git-dir|work-tree)=\S+\s+)*"

# Dry-run flags turn an otherwise mutating invocation into a no-op.
# Rules mentioning one are matched with quoted text and comments removed.
_DRY_RUN = r"--dry-run(?![=\w-])"
_NOT_DRY_RUN = rf"(?!.*\s{_DRY_RUN})"
_NOT_DRY_RUN_SHORT = rf"(?!.*\s(?:-n\b|{_DRY_RUN}))"

# Two file operands, input then output; bare numbers are option values
_OPERAND = r"\s+(?![\d&]*>)(?!\d+(?:\s|$))[^\s-]\S*"
_IN_OUT = rf"(?:\s+-\S+|\s+\d+)*{_OPERAND}(?:\s+-\S+|\s+\d+)*{_OPERAND}"

_DOCKER = r"^(?:docker|podman)\s+"
_COMPOSE = r"^(?:docker[\s-]compose|podman-compose)\b"


MODIFYING_PATTERNS: list[tuple[str, Domain, str]] = [
    # Filesystem
    (
        r"^(?:rm|rmdir|unlink|mkdir|mv|cp|install|touch|chmod|chown|chgrp|ln|"
        r"truncate|shred|mktemp|dd|tee|mkfifo|mknod|patch)\b",
        Domain.FILESYSTEM,
        "creates, deletes, moves or changes permissions of files",
    ),
    (
        r"(?i)^(?:del|erase|rd|move|copy|xcopy|robocopy|rename|ren|md|mklink)\b",
        Domain.FILESYSTEM,
        "Windows file mutation",
    ),
    (
        r"(?i)^(?:Remove-Item|Move-Item|Copy-Item|New-Item|Rename-Item|"
        r"Set-Content|Add-Content|Out-File|Clear-Content)\b",
        Domain.FILESYSTEM,
        "PowerShell file mutation",
    ),
    (
        r"^find\b.*\s(?:-delete|-exec|-execdir|-ok|-okdir|-fprint\w*|-fls)\b",
        Domain.FILESYSTEM,
        "find with -delete or -exec",
    ),
    (
        r"^xargs\b.*\b(?:rm|mv|cp|chmod|chown|ln|touch|mkdir|kill|sed\s+-i)\b",
        Domain.FILESYSTEM,
        "xargs feeding a mutating command",
    ),
    (
        r"^tar\s+(?:-?[a-zA-Z]*[cxru][a-zA-Z]*\b|.*--(?:extract|create|append|update|delete)\b)",
        Domain.FILESYSTEM,
        "tar create/extract",
    ),
    (
        r"^(?:zip|gzip|gunzip|bzip2|bunzip2|xz|unxz|7z)\b|^unzip\b(?!\s+-[lZv]\b)",
        Domain.FILESYSTEM,
        "archive compression or extraction",
    ),
    (
        r"^rsync\b" + _NOT_DRY_RUN_SHORT,
        Domain.FILESYSTEM,
        "rsync copy",
    ),
    # Redirection to a file, including >& FILE (/dev/null and fd duplication are not writes)
    (
        r"(?<![<>])(?:\d+|&)?>>?"
        r"(?:&\s*(?![\d-]|/dev/(?:null|stdout|stderr|tty)\b)|(?![>&])\s*(?!/dev/(?:null|stdout|stderr|tty)\b))\S",
        Domain.REDIRECTION,
        "output redirected to a file",
    ),
    # Package managers
    (
        r"^(?:npm|pnpm|yarn|bun)\s+(?:install|i|ci|add|uninstall|un|remove|rm|"
        r"update|up|upgrade|link|unlink|publish|unpublish|init|create|dedupe|prune|"
        r"rebuild|version|pack|import)\b" + _NOT_DRY_RUN,
        Domain.PACKAGE_MANAGER,
        "JavaScript package install/remove/publish",
    ),
    (
        r"^(?:yarn|pnpm|bun)\s*$",
        Domain.PACKAGE_MANAGER,
        "bare package manager invocation installs dependencies",
    ),
    (
        r"^(?:npm|pnpm|yarn)\s+audit\s+fix\b",
        Domain.PACKAGE_MANAGER,
        "audit fix rewrites dependencies",
    ),
    (
        r"^(?:python3?\s+-m\s+)?pip3?\s+(?:install|uninstall|download|wheel)\b" + _NOT_DRY_RUN,
        Domain.PACKAGE_MANAGER,
        "pip install/uninstall",
    ),
    (
        r"^(?:uv\s+(?:pip\s+)?(?:install|uninstall|add|remove|sync|lock|venv)|"
        r"poetry\s+(?:add|remove|install|update|lock|publish|init|new)|"
        r"pipenv\s+(?:install|uninstall|update|lock|sync)|"
        r"conda\s+(?:install|remove|update|create)|"
        r"pipx\s+(?:install|uninstall|upgrade|inject))\b",
        Domain.PACKAGE_MANAGER,
        "Python environment mutation",
    ),
    (
        r"^cargo\s+(?:install|uninstall|add|remove|publish|update|new|init)\b" + _NOT_DRY_RUN,
        Domain.PACKAGE_MANAGER,
        "cargo dependency or publish change",
    ),
    (
        r"^go\s+(?:get|install|mod\s+(?:tidy|download|init|vendor|edit)|env\s+-w)\b",
        Domain.PACKAGE_MANAGER,
        "go module mutation",
    ),
    (
        r"^(?:brew|apt|apt-get|yum|dnf|pacman|apk|zypper|snap|port|choco|winget|scoop)\s+"
        r"(?:install|uninstall|remove|purge|upgrade|update|reinstall|add|del|-S\w*|-R\w*|-U\w*)\b",
        Domain.PACKAGE_MANAGER,
        "system package install/remove",
    ),
    (
        r"^(?:gem\s+(?:install|uninstall|update)|composer\s+(?:install|require|remove|update)|"
        r"bundle\s+(?:install|update|add))\b",
        Domain.PACKAGE_MANAGER,
        "Ruby/PHP dependency change",
    ),
    (
        r"^dotnet\s+(?:add|remove|new|publish|restore|tool\s+(?:install|uninstall)|nuget\s+push)\b",
        Domain.PACKAGE_MANAGER,
        ".NET project mutation",
    ),
    # Version control
    (
        _GIT
        + r"(?:push|clean)\b"
        + _NOT_DRY_RUN_SHORT,
        Domain.VCS,
        "git push/clean",
    ),
    (
        _GIT
        + r"(?:reset|rebase|merge|cherry-pick|revert|rm|mv|pull|am|apply|filter-branch|"
        r"filter-repo|gc|prune|switch|init|clone|update-ref|replace|bisect|"
        r"worktree\s+(?:add|remove|prune)|submodule\s+(?:update|add|deinit)|"
        r"notes\s+(?:add|remove))\b",
        Domain.VCS,
        "git history or working tree mutation",
    ),
    (
        _GIT + r"checkout\s+(?:--(?:\s|$)|\.(?:\s|$)|-f\b|--force\b|-B\b)",
        Domain.VCS,
        "git checkout discarding changes",
    ),
    (
        _GIT + r"restore\b(?!\s+--staged\b)",
        Domain.VCS,
        "git restore of working tree files",
    ),
    (
        _GIT
        + r"(?:branch\s+(?:.*\s)?(?:-[dDmMf]\b|--(?:delete|move|force)\b)|"
        r"tag\s+(?:.*\s)?(?:-d\b|--delete\b)|"
        r"stash\s+(?:drop|pop|clear|apply)\b|"
        r"remote\s+(?:add|remove|rm|rename|set-url|prune)\b)",
        Domain.VCS,
        "git ref deletion or stash/remote mutation",
    ),
    (
        _GIT + r"config\b(?!.*\s(?:--get\S*|--list|-l|--show-\S+)\b)",
        Domain.VCS,
        "git config write",
    ),
    (
        r"^gh\s+(?:pr\s+(?:create|merge|close|reopen|edit|comment|review|ready)|"
        r"issue\s+(?:create|close|reopen|edit|comment|delete)|"
        r"release\s+(?:create|delete|edit|upload)|"
        r"repo\s+(?:create|delete|fork|edit|rename|archive)|"
        r"api\b.*(?:-X|--method)\s*(?:POST|PUT|PATCH|DELETE))\b",
        Domain.VCS,
        "GitHub mutation",
    ),
    # Network
    (
        r"^curl\b.*(?:\s(?:-X|--request)[\s=]*['\"]?(?:POST|PUT|DELETE|PATCH)|"
        # Short flags may carry their value attached (-d@body.json, -o/tmp/x)
        r"\s-[a-zA-Z]*[dDTFoOKc]|"
        r"\s--(?:data\S*|upload-file|form\S*|json|output\S*|remote-name\S*|config|"
        r"dump-header|cookie-jar|trace\S*|stderr|libcurl|create-dirs)\b)",
        Domain.NETWORK,
        "curl sending data or writing files",
    ),
    (
        r"^(?:wget|scp|sftp|ftp)\b",
        Domain.NETWORK,
        "download or upload",
    ),
    (
        r"^(?:http|https|xh)\s+(?:POST|PUT|PATCH|DELETE)\b",
        Domain.NETWORK,
        "mutating HTTP request",
    ),
    (
        r"(?i)^Invoke-(?:WebRequest|RestMethod)\b.*-Method\s+['\"]?(?:Post|Put|Delete|Patch)",
        Domain.NETWORK,
        "mutating HTTP request",
    ),
    # Process and service control
    (
        r"(?i)^(?:kill|killall|pkill|xkill|taskkill|Stop-Process)\b",
        Domain.PROCESS,
        "terminates processes",
    ),
    (
        r"^(?:shutdown|reboot|halt|poweroff)\b",
        Domain.PROCESS,
        "power state change",
    ),
    (
        r"^systemctl\s+(?:--\S+\s+)*(?:start|stop|restart|reload|enable|disable|mask|unmask|"
        r"kill|daemon-reload|edit|set-property|isolate)\b",
        Domain.PROCESS,
        "service control",
    ),
    (
        r"^service\s+\S+\s+(?:start|stop|restart|reload|force-reload)\b",
        Domain.PROCESS,
        "service control",
    ),
    (
        r"^launchctl\s+(?:load|unload|start|stop|kickstart|bootstrap|bootout|remove)\b",
        Domain.PROCESS,
        "launchd service control",
    ),
    (
        r"^crontab\s+-[re]\b",
        Domain.PROCESS,
        "crontab edit",
    ),
    # System
    (
        r"^(?:sudo|doas|su|pkexec)\b",
        Domain.SYSTEM,
        "privilege escalation",
    ),
    (
        r"^(?:mount|umount|swapon|swapoff|mkfs\S*|fdisk|parted|useradd|userdel|usermod|"
        r"groupadd|groupdel|passwd|chpasswd)\b|^sysctl\s+-w\b",
        Domain.SYSTEM,
        "system configuration change",
    ),
    # In-place text editing
    (
        r"^sed\b(?:.*\s)?(?:-[a-zA-Z]*i\S*|--in-place\S*)(?:\s|$)",
        Domain.TEXT_EDIT,
        "sed in-place edit",
    ),
    (
        r"^perl\b(?:.*\s)?-[a-zA-Z]*i|^g?awk\b.*-i\s+inplace\b",
        Domain.TEXT_EDIT,
        "in-place edit",
    ),
    (
        r"^sort\b.*\s(?:-o\s*\S|--output)",
        Domain.TEXT_EDIT,
        "sort writing to a file",
    ),
    # Inspection tools with writing forms
    (
        r"^yq\b(?:.*\s)?(?:-[a-zA-Z]*i\b|--inplace\b)",
        Domain.TEXT_EDIT,
        "yq in-place edit",
    ),
    (
        rf"^(?:uniq|xxd)\b{_IN_OUT}",
        Domain.TEXT_EDIT,
        "writes its output file",
    ),
    (
        r"^tree\b.*\s-[a-zA-Z]*o",
        Domain.FILESYSTEM,
        "tree writing to a file",
    ),
    (
        r"^fd\b.*\s(?:-[a-zA-Z]*[xX]\b|--exec(?:-batch)?\b)",
        Domain.FILESYSTEM,
        "fd running a command per match",
    ),
    (
        r"^journalctl\b.*\s--(?:vacuum-\S+|rotate|flush|sync|relinquish-var|"
        r"smart-relinquish-var|setup-keys|update-catalog)\b|"
        r"^dmesg\b.*\s(?:-[a-zA-Z]*[cCDEn]\b|--(?:clear|read-clear|console-\S+)\b)",
        Domain.SYSTEM,
        "log rotation or clearing",
    ),
    (
        r"^date\b.*\s(?:-s|--set)\b|^date\s+(?:-[a-zA-Z]+\s+)*[\d.]{8,}\s*$|"
        r"^hostname\s+(?:[^\s-]|-[a-zA-Z]*[bF]\b|--(?:boot|file)\b)",
        Domain.SYSTEM,
        "clock or hostname change",
    ),
    (
        r"^route\s+(?:-\S+\s+)*(?:add|del|delete|change|flush|replace)\b|"
        r"^arp\b.*\s(?:-[a-zA-Z]*[dsf]\b|--(?:delete|set|file)\b)|"
        r"^ss\b.*\s(?:-[a-zA-Z]*K\b|--kill\b)|"
        r"^ifconfig\s+[^\s-]\S*\s+\S|"
        r"(?i:^ipconfig\s+/(?:release|renew|flushdns|registerdns|setclassid))",
        Domain.NETWORK,
        "network configuration change",
    ),
    # Containers and orchestration
    (
        _DOCKER
        + r"(?:run|exec|build|push|pull|rm|rmi|stop|start|restart|kill|create|commit|tag|"
        r"load|import|cp|rename|pause|unpause|update|login|logout|prune|buildx\s+build)\b",
        Domain.CONTAINER,
        "container lifecycle change",
    ),
    (
        _DOCKER
        + r"(?:container|image|volume|network|system|builder)\s+"
        r"(?:rm|prune|create|remove|build|push|pull|tag|stop|start|kill|restart|connect|disconnect)\b",
        Domain.CONTAINER,
        "container resource change",
    ),
    (
        _COMPOSE
        + r".*\s(?:up|down|build|rm|restart|stop|start|pull|push|exec|run|create|kill|pause|unpause)\b",
        Domain.CONTAINER,
        "compose lifecycle change",
    ),
    (
        r"^kubectl\s+(?:apply|delete|create|edit|patch|replace|scale|autoscale|"
        r"rollout\s+(?:restart|undo|pause|resume)|exec|run|expose|label|annotate|taint|"
        r"drain|cordon|uncordon|set|cp|port-forward)\b",
        Domain.CONTAINER,
        "cluster mutation",
    ),
    (
        r"^helm\s+(?:install|upgrade|uninstall|delete|rollback|repo\s+(?:add|remove))\b|"
        r"^terraform\s+(?:apply|destroy|import|taint|untaint|state\s+(?:rm|mv|push))\b",
        Domain.CONTAINER,
        "infrastructure mutation",
    ),
    # Perforce
    (
        r"^p4\s+(?:submit|revert|edit|add|delete|shelve|unshelve|resolve|sync|integrate|move|lock|unlock)\b",
        Domain.PERFORCE,
        "Perforce mutation",
    ),
]


READONLY_PATTERNS: list[tuple[str, Domain, str]] = [
    # File and metadata inspection
    (
        r"^(?:ls|ll|dir|tree|exa|eza|lsd|find|fd|locate|where|which|whereis|file|stat|"
        r"wc|du|df|realpath|readlink|dirname|basename|lsof)\b",
        Domain.FILESYSTEM,
        "file listing and metadata",
    ),
    (
        r"^(?:cat|type|head|tail|less|more|bat|nl|od|xxd|hexdump|strings)\b",
        Domain.FILESYSTEM,
        "file viewing",
    ),
    (
        r"(?i)^(?:Get-ChildItem|Get-Content|Get-Item|Test-Path|Resolve-Path)\b",
        Domain.FILESYSTEM,
        "PowerShell file inspection",
    ),
    (
        r"^tar\s+(?:-?[a-zA-Z]*t[a-zA-Z]*\b|--list\b)|^unzip\s+-[lZv]\b",
        Domain.FILESYSTEM,
        "archive listing",
    ),
    # Environment and system inspection
    (
        r"^(?:echo|printf|pwd|whoami|id|groups|hostname|uname|date|cal|uptime|printenv|"
        r"locale|nproc|free|vmstat|iostat|lscpu|lsblk|lsb_release|sw_vers|arch|tty|"
        r"true|false|sleep|test|man|help|info|getconf|ulimit)\b",
        Domain.SYSTEM,
        "environment and system information",
    ),
    (
        r"^(?:env|set|alias|history)\s*$|^\[\[?\s",
        Domain.SYSTEM,
        "shell state listing",
    ),
    (
        r"^(?:cd|pushd|popd)\b",
        Domain.SYSTEM,
        "directory navigation",
    ),
    (
        r"^(?:ps|top|htop|pgrep|pstree|jobs|tasklist|systeminfo|ver|journalctl|dmesg)\b",
        Domain.PROCESS,
        "process listing",
    ),
    (
        r"^systemctl\s+(?:status|list-units|list-unit-files|is-active|is-enabled|show|cat)\b|"
        r"^service\s+\S+\s+status\b|^launchctl\s+list\b",
        Domain.PROCESS,
        "service status",
    ),
    # Version control inspection, plus locally reversible staging
    (
        _GIT
        + r"(?:status|log|diff|show|branch|tag|remote|describe|rev-parse|rev-list|ls-files|"
        r"ls-tree|ls-remote|cat-file|blame|shortlog|reflog|whatchanged|grep|help|version|"
        r"count-objects|for-each-ref|name-rev|merge-base|check-ignore|var|"
        r"config\s+(?:.*\s)?(?:--get\S*|--list|-l|--show-\S+)|stash\s+(?:list|show))\b|"
        r"^git\s+--version\b",
        Domain.VCS,
        "git inspection",
    ),
    (
        _GIT + r"(?:add|commit|fetch|stash|restore\s+--staged)\b",
        Domain.VCS,
        "git staging (locally reversible)",
    ),
    (
        r"^gh\s+(?:(?:pr|issue|run|release|repo|workflow)\s+(?:list|view|status|diff|checks)|"
        r"auth\s+status|--version)\b",
        Domain.VCS,
        "GitHub inspection",
    ),
    # Search, filter, sort, diff
    (
        r"^(?:grep|egrep|fgrep|rg|ag|ack|findstr|sort|uniq|cut|tr|paste|join|column|comm|"
        r"diff|cmp|colordiff|jq|yq|fold|fmt|expand|rev|tac|seq|zcat|zgrep)\b",
        Domain.SEARCH,
        "search and text filtering",
    ),
    (
        r"(?i)^Select-String\b",
        Domain.SEARCH,
        "PowerShell search",
    ),
    (
        r"^sed\s+-n\s",
        Domain.SEARCH,
        "sed print-only",
    ),
    (
        r"^xargs\s+(?:-\S+\s+)*(?:grep|cat|wc|head|tail|ls|echo|file|stat|rg)\b",
        Domain.SEARCH,
        "xargs feeding a read-only command",
    ),
    # Checksums
    (
        r"(?i)^(?:md5sum|md5|sha1sum|sha224sum|sha256sum|sha384sum|sha512sum|shasum|"
        r"cksum|b2sum|sum|Get-FileHash)\b",
        Domain.CHECKSUM,
        "checksum",
    ),
    # Network probes and GET-only HTTP
    (
        r"^(?:ping|ping6|nslookup|dig|host|traceroute|tracert|tracepath|mtr|whois|"
        r"ipconfig|ifconfig|netstat|ss|arp|route)\b",
        Domain.NETWORK,
        "network probe",
    ),
    (
        r"^ip\s+(?:-\S+\s+)*(?:a|addr|address|r|route|l|link|n|neigh)(?:\s+show)?\s*$",
        Domain.NETWORK,
        "network configuration listing",
    ),
    (
        r"^curl\b",
        Domain.NETWORK,
        "curl GET",
    ),
    # Container and orchestration inspection
    (
        _DOCKER
        + r"(?:ps|images|logs|inspect|stats|version|info|top|port|diff|history|search|events|"
        r"context\s+ls|container\s+(?:ls|list|inspect|logs)|image\s+(?:ls|list|inspect|history)|"
        r"volume\s+(?:ls|inspect)|network\s+(?:ls|inspect)|system\s+(?:df|info)|--version)\b",
        Domain.CONTAINER,
        "container inspection",
    ),
    (
        _COMPOSE + r"\s+(?:-\S+\s+\S+\s+)*(?:ps|logs|config|images|top|version|ls)\b",
        Domain.CONTAINER,
        "compose inspection",
    ),
    (
        r"^kubectl\s+(?:get|describe|logs|top|version|explain|api-resources|api-versions|"
        r"cluster-info|config\s+(?:view|get-contexts|current-context)|auth\s+can-i|diff)\b",
        Domain.CONTAINER,
        "cluster inspection",
    ),
    (
        r"^helm\s+(?:list|ls|status|get|history|show|search|template|lint|version)\b|"
        r"^terraform\s+(?:plan|validate|show|output|version|providers|state\s+(?:list|show))\b",
        Domain.CONTAINER,
        "infrastructure inspection",
    ),
    # Build tools in no-op / dry-run mode
    (
        rf"^(?:make|gmake)\b.*\s(?:(?:-n|--just-print|--recon|-q|--question)\b|{_DRY_RUN})",
        Domain.BUILD,
        "make dry run",
    ),
    (
        rf"^(?:npm|pnpm|yarn|bun|cargo|pip3?|python3?\s+-m\s+pip)\b.*\s{_DRY_RUN}",
        Domain.BUILD,
        "package manager dry run",
    ),
    (
        rf"^(?:git\s+(?:push|clean)|rsync)\b.*\s(?:-n\b|{_DRY_RUN})",
        Domain.BUILD,
        "dry run",
    ),
    (
        r"^(?:npx\s+)?tsc\b.*\s--noEmit\b|^cargo\s+(?:check|tree|metadata|search)\b|"
        r"^go\s+(?:vet|list|version|env|doc)\b",
        Domain.BUILD,
        "type check or metadata query",
    ),
    # Runtime and package manager inspection
    (
        r"^(?:node|python|python3|pip|pip3|npm|npx|pnpm|yarn|bun|deno|ruby|go|cargo|rustc|"
        r"java|javac|dotnet|gcc|clang|tsc|php|perl|docker|kubectl|make|cmake)\s+"
        r"(?:--version|-v|-V|version)\s*$",
        Domain.RUNTIME,
        "version probe",
    ),
    (
        r"^(?:npm|pnpm|yarn|bun)\s+(?:list|ls|info|view|outdated|audit|why|config\s+(?:get|list)|"
        r"bin|root|prefix|help|search|explain|doctor)\b",
        Domain.RUNTIME,
        "JavaScript package inspection",
    ),
    (
        r"^(?:python3?\s+-m\s+)?pip3?\s+(?:list|show|freeze|check|index|config\s+list|debug)\b",
        Domain.RUNTIME,
        "pip inspection",
    ),
    (
        r"^dotnet\s+(?:--list-sdks|--list-runtimes|--info|--version|nuget\s+list|list)\b",
        Domain.RUNTIME,
        ".NET inspection",
    ),
    (
        r"^npx\s+--yes\s+(?:which|envinfo)\b|^brew\s+(?:list|info|search|outdated|deps|config|doctor)\b|"
        r"^(?:apt|apt-cache|dpkg)\s+(?:list|show|search|policy|-l|-L|-s)\b|"
        r"^conda\s+(?:list|info|env\s+list)\b|^uv\s+(?:pip\s+(?:list|show|freeze)|tree)\b",
        Domain.RUNTIME,
        "package inspection",
    ),
    # Perforce
    (
        r"^p4\s+(?:info|status|changes|filelog|print|diff|describe|clients|users|branches|"
        r"labels|have|where|fstat|opened)\b",
        Domain.PERFORCE,
        "Perforce inspection",
    ),
]


def compile_rules(
    patterns: list[tuple[str, Domain, str]], category: RuleCategory
) -> list[PatternRule]:
    """Compile a pattern table into PatternRule objects."""
    return [
        PatternRule(
            pattern=re.compile(pattern),
            category=category,
            domain=domain,
            description=description,
            ignore_quoted=domain is Domain.REDIRECTION or _DRY_RUN in pattern,
        )
        for pattern, domain, description in patterns
    ]


MODIFYING_RULES = compile_rules(MODIFYING_PATTERNS, RuleCategory.MODIFYING)
READONLY_RULES = compile_rules(READONLY_PATTERNS, RuleCategory.READONLY)
