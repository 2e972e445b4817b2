"""counter_vm: a deterministic decrement counter machine.

The machine has 256 unsigned 64-bit registers, a program of 65,536
instruction slots and three executable instruction kinds:

    HALT                  stop
    INC r -> t            r += 1 (wrapping), jump to t
    DEC r ? t : e         if r > 0: r -= 1, jump to t; else jump to e

A fourth kind, PURGED, marks a dead slot; reaching it raises
PurgedInstructionError.

Modules:
    instruction: Instruction kinds, index narrowing and machine constants
    state: RegisterBank, ProgramStore and MachineSnapshot
    registry: Frozen transition handlers, one per instruction kind
    machine: Program, the execution engine (step / run)
    errors: Exception hierarchy
"""

__version__ = "0.1.0"

from .errors import CounterMachineError, PurgedInstructionError
from .instruction import (
    HALT,
    PROGRAM_CAPACITY,
    PURGED,
    REGISTER_COUNT,
    REGISTER_MAX,
    Decrement,
    Halt,
    Increment,
    Instruction,
    Purged,
)
from .machine import Program, TraceEntry
from .registry import TransitionRegistry
from .state import MachineSnapshot, ProgramStore, RegisterBank

__all__ = [
    "CounterMachineError",
    "PurgedInstructionError",
    "HALT",
    "PURGED",
    "PROGRAM_CAPACITY",
    "REGISTER_COUNT",
    "REGISTER_MAX",
    "Decrement",
    "Halt",
    "Increment",
    "Instruction",
    "Purged",
    "Program",
    "TraceEntry",
    "TransitionRegistry",
    "MachineSnapshot",
    "ProgramStore",
    "RegisterBank",
]
