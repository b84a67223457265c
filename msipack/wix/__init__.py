from .command import COMPILER, LINKER, SCRIPT_NAME, CommandScript, Invocation, generate
from .runner import run_script, run_script_file

__all__ = [
    "COMPILER", "LINKER", "SCRIPT_NAME",
    "CommandScript", "Invocation", "generate",
    "run_script", "run_script_file",
]
