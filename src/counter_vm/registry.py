"""TransitionRegistry: one verified handler per instruction kind.

Each handler receives the register bank, the instruction being executed
and the current program counter, mutates at most one register and
returns the next program counter:

    Halt       -> pc unchanged, no register touched
    Increment  -> register + 1 mod 2**64, jump to target
    Decrement  -> register - 1 and jump to then, or jump to otherwise
                  when the register is already 0
    Purged     -> PurgedInstructionError

The registry is frozen once every kind has a handler, so dispatch is
exhaustive over the closed instruction set and cannot change at runtime.
"""

import logging
from typing import Callable, Dict, Optional, Type

from .errors import PurgedInstructionError
from .instruction import (
    INSTRUCTION_TYPES,
    REGISTER_MAX,
    Decrement,
    Halt,
    Increment,
    Instruction,
    Purged,
)
from .state import RegisterBank

logger = logging.getLogger(__name__)

Handler = Callable[[RegisterBank, Instruction, int], int]


class TransitionRegistry:
    """Frozen table mapping instruction kinds to transition handlers.

    Attributes:
        _handlers: Dictionary mapping instruction type to handler function
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        self._handlers: Dict[Type, Handler] = {}
        self._frozen = False
        self._register_all_handlers()
        self.freeze()

    def _register_all_handlers(self) -> None:
        self.register(Halt, self._halt)
        self.register(Increment, self._increment)
        self.register(Decrement, self._decrement)
        self.register(Purged, self._purged)

    def register(self, kind: Type, handler: Handler) -> None:
        """Register the handler for an instruction kind.

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If kind already registered or not an instruction kind
        """
        if self._frozen:
            raise RuntimeError("Cannot register handlers: registry is frozen")
        if kind not in INSTRUCTION_TYPES:
            raise ValueError(f"Not an instruction kind: {kind!r}")
        if kind in self._handlers:
            raise ValueError(f"Handler already registered: {kind.__name__}")
        self._handlers[kind] = handler

    def freeze(self) -> None:
        """Freeze the registry; every instruction kind must be covered."""
        missing = [k.__name__ for k in INSTRUCTION_TYPES if k not in self._handlers]
        if missing:
            raise RuntimeError(f"Cannot freeze registry, missing handlers: {missing}")
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def kinds(self) -> set:
        """Get set of all instruction kinds with a handler."""
        return set(self._handlers)

    def execute(self, registers: RegisterBank, instruction: Instruction, pc: int) -> int:
        """Apply one instruction to the register bank.

        Args:
            registers: Register bank to mutate
            instruction: Instruction fetched at pc
            pc: Current program counter

        Returns:
            Next program counter

        Raises:
            KeyError: If the instruction kind has no handler
            PurgedInstructionError: If the instruction is PURGED
        """
        handler = self._handlers.get(type(instruction))
        if handler is None:
            raise KeyError(f"Unknown instruction kind: {type(instruction).__name__}")
        return handler(registers, instruction, pc)

    # =========================================================================
    # Handlers
    # =========================================================================

    @staticmethod
    def _halt(registers: RegisterBank, instruction: Halt, pc: int) -> int:
        return pc

    @staticmethod
    def _increment(registers: RegisterBank, instruction: Increment, pc: int) -> int:
        """INC r -> target. Wraps from 2**64-1 to 0."""
        value = registers.get(instruction.register)
        registers.set(instruction.register, (value + 1) & REGISTER_MAX)
        return instruction.target

    @staticmethod
    def _decrement(registers: RegisterBank, instruction: Decrement, pc: int) -> int:
        """DEC r ? then : otherwise. Never goes below 0."""
        value = registers.get(instruction.register)
        if value > 0:
            registers.set(instruction.register, value - 1)
            return instruction.then
        return instruction.otherwise

    @staticmethod
    def _purged(registers: RegisterBank, instruction: Purged, pc: int) -> int:
        logger.error("Reached purged instruction at pc=%d", pc)
        raise PurgedInstructionError(pc)


# Singleton registry instance
_registry: Optional[TransitionRegistry] = None


def get_registry() -> TransitionRegistry:
    """Get the singleton transition registry instance.

    Returns:
        The frozen TransitionRegistry instance
    """
    global _registry
    if _registry is None:
        _registry = TransitionRegistry()
    return _registry
