"""Tests for the Program execution engine."""

import sys
from itertools import chain, repeat
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from counter_vm import (
    HALT,
    PROGRAM_CAPACITY,
    PURGED,
    REGISTER_MAX,
    CounterMachineError,
    Decrement,
    Increment,
    Program,
    PurgedInstructionError,
)


class TestConstruction:
    """Test Program.empty and Program.from_instructions."""

    def test_empty(self):
        prog = Program.empty()
        assert prog.pc == 0
        assert prog.is_halted() is True
        assert prog.dump_registers() == {}
        assert prog.instruction_at(PROGRAM_CAPACITY - 1) == HALT

    def test_short_sequence_padded(self):
        """Slots past the supplied sequence are HALT."""
        prog = Program.from_instructions([Increment(0, 1), Increment(0, 2)])
        assert prog.instruction_at(1) == Increment(0, 2)
        for pc in (2, 3, 1000, PROGRAM_CAPACITY - 1):
            assert prog.instruction_at(pc) == HALT

    def test_long_sequence_truncated(self):
        """Only the first PROGRAM_CAPACITY instructions are observable."""
        body = [Increment(0, pc + 1) for pc in range(PROGRAM_CAPACITY - 1)]
        # The trailing PURGED slots fall past capacity and are dropped
        prog = Program.from_instructions(chain(body, [HALT], repeat(PURGED, 10)))
        assert prog.run(PROGRAM_CAPACITY + 10) == PROGRAM_CAPACITY - 1
        assert prog.get_register(0) == PROGRAM_CAPACITY - 1
        assert prog.pc == PROGRAM_CAPACITY - 1

    def test_infinite_source(self):
        """An endless instruction source fills every slot and stops."""
        prog = Program.from_instructions(repeat(Increment(1, 0)))
        assert prog.run(5) == 5
        assert prog.get_register(1) == 5

    def test_rejects_non_instructions(self):
        with pytest.raises(TypeError):
            Program.from_instructions([Increment(0, 1), 42])

    def test_instances_do_not_share_state(self):
        source = [Increment(0, 0)]
        first = Program.from_instructions(source)
        second = Program.from_instructions(source)
        first.run(3)
        assert first.get_register(0) == 3
        assert second.get_register(0) == 0
        assert second.pc == 0


class TestRegisters:
    """Test register access through the machine."""

    def test_set_get(self):
        prog = Program.empty()
        prog.set_register(200, 12345)
        assert prog.get_register(200) == 12345

    def test_invalid_register(self):
        prog = Program.empty()
        with pytest.raises(ValueError):
            prog.get_register(256)
        with pytest.raises(ValueError):
            prog.set_register(0, REGISTER_MAX + 1)


class TestStep:
    """Test single transitions."""

    def test_step_halt_is_noop(self):
        """Stepping a halted machine never changes its state."""
        prog = Program.empty()
        prog.set_register(0, 5)
        for _ in range(3):
            prog.step()
        assert prog.pc == 0
        assert prog.get_register(0) == 5
        assert prog.steps_executed == 0

    def test_step_increment(self):
        prog = Program.from_instructions([Increment(4, 3)])
        prog.step()
        assert prog.get_register(4) == 1
        assert prog.pc == 3
        assert prog.is_halted() is True

    def test_step_decrement_branches(self):
        prog = Program.from_instructions([Decrement(0, 1, 2)])
        prog.set_register(0, 1)
        prog.step()
        assert prog.pc == 1
        assert prog.get_register(0) == 0

        prog = Program.from_instructions([Decrement(0, 1, 2)])
        prog.step()
        assert prog.pc == 2
        assert prog.get_register(0) == 0

    def test_increment_wraparound(self):
        """INC on the maximum 64-bit value wraps to 0."""
        prog = Program.from_instructions([Increment(0, 1), HALT])
        prog.set_register(0, REGISTER_MAX)
        assert prog.run(10) == 1
        assert prog.get_register(0) == 0

    def test_decrement_floor(self):
        """DEC on 0 always takes the else branch and stays at 0."""
        prog = Program.from_instructions([Decrement(0, 1, 0), PURGED])
        assert prog.run(100) == 100
        assert prog.get_register(0) == 0
        assert prog.pc == 0


class TestPurged:
    """Test the fatal purged-slot condition."""

    def test_step_on_purged_raises(self):
        prog = Program.from_instructions([PURGED])
        with pytest.raises(PurgedInstructionError):
            prog.step()

    def test_run_into_purged(self):
        """run() propagates the fault; state stays at the faulting slot."""
        prog = Program.from_instructions([Increment(0, 1), PURGED])
        with pytest.raises(PurgedInstructionError) as excinfo:
            prog.run(10)
        assert excinfo.value.pc == 1
        assert prog.pc == 1
        assert prog.get_register(0) == 1
        assert prog.steps_executed == 1

    def test_jump_far_into_purged(self):
        prog = Program.from_instructions([Increment(0, 40000)] + [HALT] * 39999 + [PURGED])
        with pytest.raises(PurgedInstructionError):
            prog.run(2)

    def test_error_hierarchy(self):
        assert issubclass(PurgedInstructionError, CounterMachineError)
        assert issubclass(PurgedInstructionError, RuntimeError)

    def test_purged_not_halted(self):
        """A purged slot is distinct from HALT."""
        prog = Program.from_instructions([PURGED])
        assert prog.is_halted() is False


class TestRun:
    """Test the budgeted run loop."""

    def test_immediate_halt(self):
        """An empty machine halts after 0 steps for any budget."""
        for budget in (1, 10, REGISTER_MAX):
            prog = Program.empty()
            assert prog.run(budget) == 0
            assert prog.dump_registers() == {}

    def test_zero_budget(self):
        prog = Program.from_instructions([Increment(0, 0)])
        assert prog.run(0) == 0
        assert prog.get_register(0) == 0

    def test_negative_budget(self):
        with pytest.raises(ValueError):
            Program.empty().run(-1)

    def test_default_budget(self):
        """run() without a budget uses DEFAULT_MAX_STEPS."""
        prog = Program.from_instructions([Increment(0, 0)])
        assert prog.run() == Program.DEFAULT_MAX_STEPS
        assert prog.get_register(0) == Program.DEFAULT_MAX_STEPS

    def test_budget_exhausted(self):
        prog = Program.from_instructions([Increment(0, 1), Increment(0, 2), Increment(0, 3)])
        assert prog.run(2) == 2
        assert prog.pc == 2
        assert prog.is_halted() is False

    def test_resume(self):
        """A second run resumes where the first stopped."""
        prog = Program.from_instructions([Increment(0, 1), Increment(0, 2), Increment(0, 3)])
        first = prog.run(2)
        second = prog.run(10)
        assert (first, second) == (2, 1)
        assert prog.get_register(0) == 3
        assert prog.is_halted() is True
        assert prog.run(10) == 0


class TestInspection:
    """Test snapshot, trace and summary."""

    def test_snapshot(self):
        prog = Program.from_instructions([Increment(3, 1)])
        prog.run(5)
        snap = prog.snapshot()
        assert snap.pc == 1
        assert snap.registers == {3: 1}
        assert snap.halted is True
        assert snap.steps_executed == 1
        assert str(prog) == "[Step 1] PC=1 r3=1 HALTED"

    def test_snapshot_is_copy(self):
        prog = Program.empty()
        prog.set_register(0, 42)
        snap = prog.snapshot()
        snap.registers[0] = 999
        assert prog.get_register(0) == 42

    def test_trace_disabled_by_default(self):
        prog = Program.from_instructions([Increment(0, 1)])
        prog.run(5)
        assert prog.trace == []

    def test_trace_entries(self):
        prog = Program.from_instructions([Decrement(0, 1, 2), Increment(1, 0)], trace=True)
        prog.set_register(0, 1)
        assert prog.run(10) == 3

        trace = prog.trace
        assert len(trace) == 3
        assert trace[0].pc == 0
        assert trace[0].next_pc == 1
        assert (trace[0].register, trace[0].before, trace[0].after) == (0, 1, 0)
        assert trace[1].instruction == Increment(1, 0)
        assert (trace[1].before, trace[1].after) == (0, 1)
        assert trace[2].next_pc == 2
        assert trace[2].before == trace[2].after == 0
        assert [e.step for e in trace] == [0, 1, 2]
        assert str(trace[1]) == "[Step 1] 1: INC r1 -> 0  PC -> 0 r1: 0 -> 1"

    def test_summary(self):
        prog = Program.from_instructions([Increment(0, 1)], trace=True)
        prog.run(5)
        assert prog.get_summary() == {
            "steps": 1,
            "halted": True,
            "pc": 1,
            "registers": {0: 1},
            "trace_length": 1,
        }
