"""Program: the counter machine execution engine.

A Program owns a register bank, a program store and a program counter.
Execution advances one instruction at a time with step(), or under a
caller-supplied step budget with run():

    FETCH (store[pc]) -> REGISTRY (handler per kind) -> REGISTERS, PC

The machine is halted exactly when the instruction at pc is HALT; there
is no separate halted flag. State persists between run() calls, so a run
that exhausts its budget can be resumed by calling run() again.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .instruction import Halt, Instruction, program_counter
from .registry import TransitionRegistry, get_registry
from .state import MachineSnapshot, ProgramStore, RegisterBank

logger = logging.getLogger(__name__)


@dataclass
class TraceEntry:
    """Single entry in the execution trace.

    Attributes:
        step: Transition number (0-indexed, cumulative for the machine)
        pc: Program counter the instruction was fetched from
        instruction: Instruction executed
        next_pc: Program counter after the transition
        register: Register the instruction addressed
        before: Register value before the transition
        after: Register value after the transition
    """
    step: int
    pc: int
    instruction: Instruction
    next_pc: int
    register: int
    before: int
    after: int

    def __str__(self) -> str:
        change = f"r{self.register}: {self.before} -> {self.after}" if self.before != self.after else ""
        return f"[Step {self.step}] {self.pc}: {self.instruction}  PC -> {self.next_pc} {change}".rstrip()


class Program:
    """Counter machine with 256 registers and 65,536 instruction slots.

    Build one with Program.empty() or Program.from_instructions().

    Attributes:
        registry: Frozen TransitionRegistry used for dispatch
        steps_executed: Transitions performed so far (HALT polls excluded)
    """

    DEFAULT_MAX_STEPS = 10000

    def __init__(self, trace: bool = False):
        """Initialize an empty machine: every slot HALT, pc 0, registers 0.

        Args:
            trace: Record a TraceEntry for every transition
        """
        self.registry: TransitionRegistry = get_registry()
        self._registers = RegisterBank()
        self._store = ProgramStore()
        self._pc = 0
        self.steps_executed = 0
        self._trace: Optional[List[TraceEntry]] = [] if trace else None

    @classmethod
    def empty(cls, trace: bool = False) -> "Program":
        """Create a machine whose every slot is HALT."""
        return cls(trace=trace)

    @classmethod
    def from_instructions(cls, instructions: Iterable[Instruction], trace: bool = False) -> "Program":
        """Create a machine with instructions copied into slots 0, 1, 2, ...

        Slots past the end of the sequence stay HALT. Only the first
        PROGRAM_CAPACITY instructions are used; the rest are never read.

        Args:
            instructions: Ordered, finite instruction sequence
            trace: Record a TraceEntry for every transition

        Returns:
            New Program with pc 0 and all registers 0

        Raises:
            TypeError: If an item is not an instruction
        """
        program = cls(trace=trace)
        loaded = program._store.load(instructions)
        logger.debug("Loaded %d instructions", loaded)
        return program

    # =========================================================================
    # Registers
    # =========================================================================

    def set_register(self, index: int, value: int) -> None:
        """Overwrite a register.

        Args:
            index: Register index (0..255)
            value: New value (0..2**64-1)
        """
        self._registers.set(index, value)

    def get_register(self, index: int) -> int:
        """Get value of a register (0..255)."""
        return self._registers.get(index)

    def dump_registers(self) -> Dict[int, int]:
        """Get a copy of all non-zero register values.

        Returns:
            Dictionary mapping register index to value
        """
        return self._registers.dump()

    # =========================================================================
    # Execution
    # =========================================================================

    @property
    def pc(self) -> int:
        """Program counter of the instruction about to execute."""
        return self._pc

    def instruction_at(self, pc: int) -> Instruction:
        return self._store.fetch(pc)

    def is_halted(self) -> bool:
        """Check whether the instruction at pc is HALT."""
        return isinstance(self._store.fetch(self._pc), Halt)

    def step(self) -> None:
        """Execute a single transition.

        HALT leaves the machine unchanged, so stepping a halted machine is
        harmless. Increment and Decrement update one register and the pc.

        Raises:
            PurgedInstructionError: If the instruction at pc is PURGED.
                Machine state is left as it was before the call.
        """
        pc = self._pc
        instruction = self._store.fetch(pc)
        if isinstance(instruction, Halt):
            return

        # PURGED has no register operand
        register = getattr(instruction, "register", 0)
        before = self._registers.get(register) if self._trace is not None else 0

        next_pc = self.registry.execute(self._registers, instruction, pc)
        self._pc = program_counter(next_pc)

        if self._trace is not None:
            self._trace.append(TraceEntry(
                step=self.steps_executed,
                pc=pc,
                instruction=instruction,
                next_pc=next_pc,
                register=register,
                before=before,
                after=self._registers.get(register),
            ))
        self.steps_executed += 1

    def run(self, max_steps: Optional[int] = None) -> int:
        """Run until HALT or until max_steps transitions have been executed.

        The HALT check happens before every transition, so a machine that is
        already halted returns 0 without doing anything.

        Args:
            max_steps: Step budget (uses DEFAULT_MAX_STEPS if None)

        Returns:
            Number of transitions executed by this call; equals max_steps
            when the budget ran out before reaching HALT

        Raises:
            ValueError: If max_steps is negative
            PurgedInstructionError: If execution reaches a PURGED slot
        """
        limit = self.DEFAULT_MAX_STEPS if max_steps is None else max_steps
        if limit < 0:
            raise ValueError(f"max_steps must be non-negative, got {limit}")

        logger.debug("Run from pc=%d with budget %d", self._pc, limit)
        for executed in range(limit):
            if self.is_halted():
                logger.debug("Halted at pc=%d after %d steps", self._pc, executed)
                return executed
            self.step()

        logger.debug("Budget of %d steps exhausted at pc=%d", limit, self._pc)
        return limit

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def trace(self) -> List[TraceEntry]:
        """Recorded trace entries (empty when tracing is disabled)."""
        return list(self._trace) if self._trace is not None else []

    def snapshot(self) -> MachineSnapshot:
        """Create a copy of the current state for tracing."""
        return MachineSnapshot(
            pc=self._pc,
            registers=self._registers.dump(),
            halted=self.is_halted(),
            steps_executed=self.steps_executed,
        )

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with execution statistics and final state
        """
        return {
            "steps": self.steps_executed,
            "halted": self.is_halted(),
            "pc": self._pc,
            "registers": self.dump_registers(),
            "trace_length": len(self._trace) if self._trace is not None else 0,
        }

    def __str__(self) -> str:
        return str(self.snapshot())
