"""
CHIP-8 register file and call stack.
"""

import logging
from typing import Dict, Any, List

from ...constants import REGISTER_COUNT, FLAG_REGISTER, PROGRAM_START, STACK_DEPTH
from ...utils.error_handler import StackOverflowError, StackUnderflowError

logger = logging.getLogger("Chip8Emulator.Chip8.Registers")

class RegisterFile:
    """
    Sixteen 8-bit general registers V0-VF plus the index register I and the
    program counter.

    VF is an ordinary slot in ``V``; flag-producing instructions overwrite it.
    """

    def __init__(self):
        self.V = bytearray(REGISTER_COUNT)
        self.I = 0
        self.PC = PROGRAM_START

    def reset(self) -> None:
        self.V = bytearray(REGISTER_COUNT)
        self.I = 0
        self.PC = PROGRAM_START

    @property
    def flag(self) -> int:
        return self.V[FLAG_REGISTER]

    @flag.setter
    def flag(self, value: int) -> None:
        self.V[FLAG_REGISTER] = 1 if value else 0

    def get_state(self) -> Dict[str, Any]:
        state = {f"V{i:X}": value for i, value in enumerate(self.V)}
        state["I"] = self.I
        state["PC"] = self.PC
        return state

class CallStack:
    """
    Fixed-depth stack of return addresses.

    Overflow and underflow raise instead of wrapping; the stack is left
    unchanged when they do.
    """

    def __init__(self, depth: int = STACK_DEPTH):
        self.depth = depth
        self.entries: List[int] = [0] * depth
        self.sp = 0

    def reset(self) -> None:
        self.entries = [0] * self.depth
        self.sp = 0

    def push(self, address: int) -> None:
        """
        Push a return address.

        Raises:
            StackOverflowError: If the stack is full.
        """
        if self.sp >= self.depth:
            raise StackOverflowError(f"Call stack overflow at depth {self.depth} (return address 0x{address:03X})")
        self.entries[self.sp] = address
        self.sp += 1

    def pop(self) -> int:
        """
        Pop the most recent return address.

        Raises:
            StackUnderflowError: If the stack is empty.
        """
        if self.sp == 0:
            raise StackUnderflowError("Return with empty call stack")
        self.sp -= 1
        return self.entries[self.sp]

    def peek(self) -> int:
        if self.sp == 0:
            raise StackUnderflowError("Call stack is empty")
        return self.entries[self.sp - 1]

    def __len__(self) -> int:
        return self.sp

    def get_state(self) -> Dict[str, Any]:
        return {
            "SP": self.sp,
            "stack": list(self.entries[:self.sp]),
        }
