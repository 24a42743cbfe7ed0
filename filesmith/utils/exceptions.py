class FilesmithError(Exception):
    """Base exception for the skill-application engine."""


class SkillNotFoundError(FilesmithError):
    def __init__(self, skill_id: str):
        self.skill_id = skill_id
        super().__init__(f"Skill not found: {skill_id}")


class SkillDefinitionError(FilesmithError):
    def __init__(self, path: str, detail: str):
        self.path = path
        super().__init__(f"Invalid skill definition {path}: {detail}")


class ParamValidationError(FilesmithError):
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid parameter '{field}': {reason}")


class WorkingFileNotFoundError(FilesmithError):
    def __init__(self, file_id: str):
        self.file_id = file_id
        super().__init__(f"File not found: {file_id}")


class UnsupportedInputTypeError(FilesmithError):
    def __init__(self, skill_id: str, file_extension: str):
        self.skill_id = skill_id
        self.file_extension = file_extension
        super().__init__(
            f"Skill '{skill_id}' does not accept '{file_extension or '<none>'}' files"
        )


class UnknownDriverError(FilesmithError):
    def __init__(self, driver: str):
        self.driver = driver
        super().__init__(f"No transform driver registered for tag: {driver}")


class DriverExecutionError(FilesmithError):
    def __init__(self, driver: str, cause: str):
        self.driver = driver
        self.cause = cause
        super().__init__(f"Driver '{driver}' failed: {cause}")


class ReplayError(FilesmithError):
    def __init__(self, file_id: str, failed_index: int, cause: str):
        self.file_id = file_id
        self.failed_index = failed_index
        self.cause = cause
        super().__init__(
            f"Replay of file {file_id} failed at step {failed_index}: {cause}"
        )


class IndexOutOfRangeError(FilesmithError):
    def __init__(self, file_id: str, index: int, length: int):
        self.file_id = file_id
        self.index = index
        self.length = length
        super().__init__(
            f"Index {index} out of range for file {file_id} ({length} applied skills)"
        )


class InvalidModeError(FilesmithError):
    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"Invalid session mode: {mode}")


class SkillTrustError(FilesmithError):
    def __init__(self, skill_id: str, permissions: list[str]):
        self.skill_id = skill_id
        self.permissions = permissions
        super().__init__(
            f"Skill '{skill_id}' requires trust: {', '.join(permissions)}"
        )


class ExportError(FilesmithError):
    def __init__(self, file_id: str, cause: str):
        self.file_id = file_id
        self.cause = cause
        super().__init__(f"Export of file {file_id} failed: {cause}")
