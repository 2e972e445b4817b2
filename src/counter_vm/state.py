"""Storage for the counter machine: register bank and program store.

State Components:
    - RegisterBank: 256 unsigned 64-bit counters, all initially 0
    - ProgramStore: 65,536 instruction slots, all initially HALT
    - MachineSnapshot: copy of the observable state for tracing

Both containers have a fixed size and address their contents through
narrowed indices, so an access can only fail for a value that could
never have been a valid index in the first place.
"""

from dataclasses import dataclass, field
from itertools import islice
from typing import Dict, Iterable, List

from .instruction import (
    HALT,
    PROGRAM_CAPACITY,
    REGISTER_COUNT,
    Instruction,
    is_instruction,
    program_counter,
    register_index,
    register_value,
)


class RegisterBank:
    """Fixed bank of 256 unsigned 64-bit registers."""

    def __init__(self):
        self._values: List[int] = [0] * REGISTER_COUNT

    def get(self, index: int) -> int:
        """Get value of a register.

        Args:
            index: Register index (0..255)

        Returns:
            Register value
        """
        return self._values[register_index(index)]

    def set(self, index: int, value: int) -> None:
        """Overwrite a register unconditionally.

        Args:
            index: Register index (0..255)
            value: New value (0..2**64-1)
        """
        self._values[register_index(index)] = register_value(value)

    def dump(self) -> Dict[int, int]:
        """Get a copy of all non-zero registers.

        Returns:
            Dictionary of register index to value
        """
        return {i: v for i, v in enumerate(self._values) if v}

    def __len__(self) -> int:
        return REGISTER_COUNT


class ProgramStore:
    """Fixed-capacity array of 65,536 instruction slots."""

    def __init__(self):
        self._slots: List[Instruction] = [HALT] * PROGRAM_CAPACITY

    def load(self, instructions: Iterable[Instruction]) -> int:
        """Copy instructions positionally into the slots, starting at 0.

        At most PROGRAM_CAPACITY items are taken from the iterable; any
        excess is never consumed. Slots past the loaded range keep their
        current contents.

        Returns:
            Number of slots written

        Raises:
            TypeError: If an item is not an instruction
        """
        count = 0
        for pc, instruction in enumerate(islice(instructions, PROGRAM_CAPACITY)):
            if not is_instruction(instruction):
                raise TypeError(
                    f"Slot {pc}: expected an instruction, got {type(instruction).__name__}"
                )
            self._slots[pc] = instruction
            count += 1
        return count

    def fetch(self, pc: int) -> Instruction:
        """Get the instruction stored at a program-counter value."""
        return self._slots[program_counter(pc)]

    def __len__(self) -> int:
        return PROGRAM_CAPACITY


@dataclass(frozen=True)
class MachineSnapshot:
    """Copy of the observable machine state.

    Attributes:
        pc: Program counter
        registers: Non-zero registers (index -> value)
        halted: Whether the instruction at pc is HALT
        steps_executed: Transitions performed so far
    """
    pc: int
    registers: Dict[int, int] = field(default_factory=dict)
    halted: bool = False
    steps_executed: int = 0

    def __str__(self) -> str:
        parts = [f"[Step {self.steps_executed}]", f"PC={self.pc}"]
        parts.extend(f"r{k}={v}" for k, v in sorted(self.registers.items()))
        if self.halted:
            parts.append("HALTED")
        return " ".join(parts)
