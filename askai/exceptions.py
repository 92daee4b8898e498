"""askai exceptions."""

from dataclasses import dataclass
from typing import List


# Exit code for configuration problems; operation failures exit with 1
CONFIG_ERROR_EXIT_CODE = 2


@dataclass
class ValidationError:
    """One problem found in a configuration file."""
    message: str
    path: str = ""
    exit_code: int = CONFIG_ERROR_EXIT_CODE

    def describe(self) -> str:
        if self.path:
            return f"Validation error at '{self.path}': {self.message}"
        return f"Validation error: {self.message}"


class ConfigValidationError(Exception):
    """Configuration could not be loaded.

    Carries every problem found so the CLI can report them together and
    exit with CONFIG_ERROR_EXIT_CODE.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = list(errors)
        self.exit_code = CONFIG_ERROR_EXIT_CODE
        super().__init__("\n".join(error.describe() for error in self.errors))
