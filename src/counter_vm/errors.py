"""Exceptions raised by the counter machine."""


class CounterMachineError(Exception):
    """Base class for counter machine errors."""


class PurgedInstructionError(CounterMachineError, RuntimeError):
    """Execution reached a purged instruction slot.

    The loaded program is malformed: dead code was removed without
    re-wiring every jump that pointed at it. Execution cannot continue.

    Attributes:
        pc: Program counter of the purged slot
    """

    def __init__(self, pc: int):
        super().__init__(f"Reached purged instruction at pc={pc}")
        self.pc = pc
