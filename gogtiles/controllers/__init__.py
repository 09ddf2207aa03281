# Controllers package
from .shell_applier import (
    ApplyState,
    ShellConfigurationApplier,
    ShellConfigurationSnapshot,
    prompt_confirmation,
)
