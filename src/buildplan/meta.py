# src/buildplan/meta.py
"""Program identity used for logger names, env prefixes and the CLI."""

from dataclasses import dataclass


PROGRAM_PACKAGE = "buildplan"
PROGRAM_SCRIPT = "buildplan"
PROGRAM_DISPLAY = "BuildPlan"
PROGRAM_ENV = "BUILDPLAN"

__version__ = "0.1.0"


@dataclass(frozen=True)
class Metadata:
    version: str
    program: str = PROGRAM_DISPLAY

    def __str__(self) -> str:
        return f"{self.program} {self.version}"


def get_metadata() -> Metadata:
    return Metadata(version=__version__)
