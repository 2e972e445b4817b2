"""Instruction model for the counter machine.

The machine understands exactly four instruction kinds:

    Halt                          stop; stepping is a no-op
    Increment(register, target)   register += 1 (mod 2**64), pc = target
    Decrement(register, then, otherwise)
                                  if register > 0: register -= 1, pc = then
                                  else:            pc = otherwise
    Purged                        dead slot left by a rewriting tool; must
                                  never be reached

Register indices are narrowed to 0..255 and program-counter values to
0..65535 when an instruction is built, so every instruction that exists
addresses a valid register and a valid slot.
"""

from dataclasses import dataclass
from typing import Union


# Machine geometry
REGISTER_COUNT = 1 << 8
PROGRAM_CAPACITY = 1 << 16

# Registers are unsigned 64-bit counters
REGISTER_BITS = 64
REGISTER_MAX = (1 << REGISTER_BITS) - 1


def _narrow(value: int, limit: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an int, got {type(value).__name__}")
    if value < 0 or value >= limit:
        raise ValueError(f"{what} out of range: {value} (expected 0..{limit - 1})")
    return value


def register_index(value: int) -> int:
    """Validate a register selector.

    Args:
        value: Candidate register index

    Returns:
        The same value, guaranteed to lie in 0..255

    Raises:
        TypeError: If value is not an int
        ValueError: If value is outside the register bank
    """
    return _narrow(value, REGISTER_COUNT, "register index")


def program_counter(value: int) -> int:
    """Validate a program-counter value (0..65535)."""
    return _narrow(value, PROGRAM_CAPACITY, "program counter")


def register_value(value: int) -> int:
    """Validate a register value as an unsigned 64-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"register value must be an int, got {type(value).__name__}")
    if value < 0 or value > REGISTER_MAX:
        raise ValueError(f"register value out of range: {value} (expected 0..{REGISTER_MAX})")
    return value


@dataclass(frozen=True)
class Halt:
    """Terminal instruction. Unfilled program slots hold this."""

    def __str__(self) -> str:
        return "HALT"


@dataclass(frozen=True)
class Increment:
    """Increment a register with wraparound, then jump.

    Attributes:
        register: Register to increment (0..255)
        target: Next program-counter value
    """
    register: int
    target: int

    def __post_init__(self):
        register_index(self.register)
        program_counter(self.target)

    def __str__(self) -> str:
        return f"INC r{self.register} -> {self.target}"


@dataclass(frozen=True)
class Decrement:
    """Decrement a register and branch on whether it was non-zero.

    Attributes:
        register: Register to test and decrement (0..255)
        then: Next program-counter value when the register was non-zero
        otherwise: Next program-counter value when the register was zero
    """
    register: int
    then: int
    otherwise: int

    def __post_init__(self):
        register_index(self.register)
        program_counter(self.then)
        program_counter(self.otherwise)

    def __str__(self) -> str:
        return f"DEC r{self.register} ? {self.then} : {self.otherwise}"


@dataclass(frozen=True)
class Purged:
    """Sentinel for a removed instruction slot. Executing it is fatal."""

    def __str__(self) -> str:
        return "PURGED"


Instruction = Union[Halt, Increment, Decrement, Purged]

INSTRUCTION_TYPES = (Halt, Increment, Decrement, Purged)

# Shared instances of the operand-free kinds
HALT = Halt()
PURGED = Purged()


def is_instruction(value: object) -> bool:
    """Check whether value is one of the four instruction kinds."""
    return isinstance(value, INSTRUCTION_TYPES)
