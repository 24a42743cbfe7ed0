"""Permission strings declared by skill definitions.

Base permissions are granted to every skill.  Elevated permissions on a
community skill require an explicit user trust decision.
"""

FILES_READ = "files.read"
FILES_WRITE = "files.write"
FILES_TEMP = "files.temp"
FILES_ANYWHERE = "files.anywhere"
NETWORK = "network"
TOOLS_EXEC = "tools.exec"  # managed tools (ffmpeg, magick, ...)
TOOLS_EXEC_ANY = "tools.exec.any"  # arbitrary executables
SYSTEM = "system"

BASE_PERMISSIONS = frozenset({FILES_READ, FILES_WRITE, FILES_TEMP, TOOLS_EXEC})
ELEVATED_PERMISSIONS = frozenset({FILES_ANYWHERE, NETWORK, TOOLS_EXEC_ANY, SYSTEM})


def normalize_permissions(perms: list[str] | None) -> list[str]:
    return sorted({p for p in perms or [] if p})


def elevated_permissions(perms: list[str] | None) -> list[str]:
    return [p for p in normalize_permissions(perms) if p in ELEVATED_PERMISSIONS]


def requires_trust(perms: list[str] | None) -> bool:
    return bool(elevated_permissions(perms))
