"""
CHIP-8 CPU emulation.

The CHIP-8 interpreter executes 35 fixed-width 16-bit instructions. Each
instruction word is split into four nibbles; the first nibble selects an
instruction family, and the 0x0, 0x8, 0xE and 0xF families are further
decoded on their low nibble or low byte. Register VF doubles as the flag
register for carry, borrow, shift and sprite collision results.

This module implements fetch, decode and execute for one instruction per
call to ``step``. Timers are ticked by the owning system, not by the CPU.
"""

from ...common.interfaces import CPU, Memory
from ...constants import (
    FLAG_REGISTER, INSTRUCTION_SIZE, ADDRESS_MASK, INDEX_MASK,
    FONT_START, FONT_GLYPH_SIZE,
)
from .registers import RegisterFile, CallStack
import numpy as np
import typing as t
import logging

logger = logging.getLogger("Chip8Emulator.Chip8.CPU")

class DecodedInstruction(t.NamedTuple):
    """Fields of a 16-bit instruction word."""
    opcode: int
    x: int     # second nibble, register index
    y: int     # third nibble, register index
    n: int     # fourth nibble
    nn: int    # low byte
    nnn: int   # low 12 bits, address

    @classmethod
    def decode(cls, opcode: int) -> 'DecodedInstruction':
        return cls(opcode,
                   (opcode >> 8) & 0xF,
                   (opcode >> 4) & 0xF,
                   opcode & 0xF,
                   opcode & 0xFF,
                   opcode & 0xFFF)

class Chip8CPU(CPU):
    """
    Emulates the CHIP-8 interpreter's instruction set.

    The CPU owns the register file and call stack and is connected to the
    memory, display, timers and keypad by the system. Unknown instructions
    and out-of-range addresses are reported as anomalies and execution
    continues; stack overflow and underflow raise.
    """

    def __init__(self, random_seed: t.Optional[int] = None):
        """
        Initialize the CPU.

        Args:
            random_seed: Seed for the random number instruction (None for entropy)
        """
        self.registers = RegisterFile()
        self.stack = CallStack()

        # Connected components
        self.memory = None
        self.display = None
        self.timers = None
        self.keypad = None

        self.random_seed = random_seed
        self.rng = np.random.default_rng(random_seed)

        # Execution state
        self.opcode = 0
        self.cycles = 0
        self.advance_pc = True
        self.waiting_for_key = False

        # Called with (message, context) for non-fatal anomalies
        self.anomaly_callback: t.Optional[t.Callable[[str, t.Dict[str, t.Any]], None]] = None

        self._build_instruction_table()

        logger.info("CHIP-8 CPU initialized")

    def _build_instruction_table(self):
        """Build the instruction lookup tables."""
        # First nibble
        self.instructions = {
            0x0: self._execute_0xxx,
            0x1: self._jp,          # 1nnn - JP addr
            0x2: self._call,        # 2nnn - CALL addr
            0x3: self._se_byte,     # 3xnn - SE Vx, byte
            0x4: self._sne_byte,    # 4xnn - SNE Vx, byte
            0x5: self._se_reg,      # 5xy0 - SE Vx, Vy
            0x6: self._ld_byte,     # 6xnn - LD Vx, byte
            0x7: self._add_byte,    # 7xnn - ADD Vx, byte
            0x8: self._execute_8xxx,
            0x9: self._sne_reg,     # 9xy0 - SNE Vx, Vy
            0xA: self._ld_i,        # Annn - LD I, addr
            0xB: self._jp_v0,       # Bnnn - JP V0, addr
            0xC: self._rnd,         # Cxnn - RND Vx, byte
            0xD: self._drw,         # Dxyn - DRW Vx, Vy, nibble
            0xE: self._execute_exxx,
            0xF: self._execute_fxxx,
        }

        # 0x0 family, keyed by low byte
        self.system_instructions = {
            0xE0: self._cls,        # 00E0 - CLS
            0xEE: self._ret,        # 00EE - RET
        }

        # 0x8 family, keyed by low nibble
        self.alu_instructions = {
            0x0: self._alu_ld,      # 8xy0 - LD Vx, Vy
            0x1: self._alu_or,      # 8xy1 - OR Vx, Vy
            0x2: self._alu_and,     # 8xy2 - AND Vx, Vy
            0x3: self._alu_xor,     # 8xy3 - XOR Vx, Vy
            0x4: self._alu_add,     # 8xy4 - ADD Vx, Vy
            0x5: self._alu_sub,     # 8xy5 - SUB Vx, Vy
            0x6: self._alu_shr,     # 8xy6 - SHR Vx
            0x7: self._alu_subn,    # 8xy7 - SUBN Vx, Vy
            0xE: self._alu_shl,     # 8xyE - SHL Vx
        }

        # 0xE family, keyed by low byte
        self.key_instructions = {
            0x9E: self._skp,        # Ex9E - SKP Vx
            0xA1: self._sknp,       # ExA1 - SKNP Vx
        }

        # 0xF family, keyed by low byte
        self.misc_instructions = {
            0x07: self._ld_vx_dt,   # Fx07 - LD Vx, DT
            0x0A: self._ld_vx_k,    # Fx0A - LD Vx, K
            0x15: self._ld_dt_vx,   # Fx15 - LD DT, Vx
            0x18: self._ld_st_vx,   # Fx18 - LD ST, Vx
            0x1E: self._add_i_vx,   # Fx1E - ADD I, Vx
            0x29: self._ld_f_vx,    # Fx29 - LD F, Vx
            0x33: self._ld_b_vx,    # Fx33 - LD B, Vx
            0x55: self._ld_mem_vx,  # Fx55 - LD [I], Vx
            0x65: self._ld_vx_mem,  # Fx65 - LD Vx, [I]
        }

    def set_memory(self, memory: Memory) -> None:
        self.memory = memory

    def connect_display(self, display) -> None:
        self.display = display

    def connect_timers(self, timers) -> None:
        self.timers = timers

    def connect_keypad(self, keypad) -> None:
        self.keypad = keypad

    def reset(self) -> None:
        self.registers.reset()
        self.stack.reset()
        self.opcode = 0
        self.cycles = 0
        self.advance_pc = True
        self.waiting_for_key = False

    # Register access

    @property
    def V(self) -> bytearray:
        return self.registers.V

    @property
    def PC(self) -> int:
        return self.registers.PC

    @PC.setter
    def PC(self, value: int) -> None:
        if value > ADDRESS_MASK:
            wrapped = value & ADDRESS_MASK
            self._report(f"Program counter out of range: 0x{value:X}, wrapped to 0x{wrapped:03X}",
                         pc=value)
            value = wrapped
        self.registers.PC = value

    @property
    def I(self) -> int:
        return self.registers.I

    @I.setter
    def I(self, value: int) -> None:
        value &= INDEX_MASK
        if value > ADDRESS_MASK:
            self._report(f"Index register beyond address space: 0x{value:X}", index=value)
        self.registers.I = value

    def _report(self, message: str, **context) -> None:
        context.setdefault("pc", self.registers.PC)
        context.setdefault("opcode", self.opcode)
        logger.warning(message)
        if self.anomaly_callback:
            self.anomaly_callback(message, context)

    def step(self) -> int:
        """
        Fetch, decode and execute one instruction.

        Returns:
            Number of cycles used (always 1)

        Raises:
            StackOverflowError: On a call with a full stack
            StackUnderflowError: On a return with an empty stack
        """
        if not self.memory:
            raise RuntimeError("CPU has no memory attached")

        pc = self.registers.PC
        self.opcode = self.memory.read_word(pc)
        instruction = DecodedInstruction.decode(self.opcode)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"0x{pc:03X}: {self.opcode:04X}")

        self.advance_pc = True
        self.instructions[self.opcode >> 12](instruction)

        if self.advance_pc:
            self.PC = self.registers.PC + INSTRUCTION_SIZE

        self.cycles += 1
        return 1

    def get_state(self) -> dict:
        state = self.registers.get_state()
        state.update(self.stack.get_state())
        state["opcode"] = self.opcode
        state["cycles"] = self.cycles
        state["waiting_for_key"] = self.waiting_for_key
        return state

    def _skip(self) -> None:
        self.PC = self.registers.PC + INSTRUCTION_SIZE

    def _unknown(self, ins: DecodedInstruction) -> None:
        self._report(f"Unknown opcode: 0x{ins.opcode:04X} at 0x{self.registers.PC:03X}")

    # Family dispatch

    def _execute_0xxx(self, ins: DecodedInstruction) -> None:
        self.system_instructions.get(ins.nn, self._unknown)(ins)

    def _execute_8xxx(self, ins: DecodedInstruction) -> None:
        self.alu_instructions.get(ins.n, self._unknown)(ins)

    def _execute_exxx(self, ins: DecodedInstruction) -> None:
        self.key_instructions.get(ins.nn, self._unknown)(ins)

    def _execute_fxxx(self, ins: DecodedInstruction) -> None:
        self.misc_instructions.get(ins.nn, self._unknown)(ins)

    # Flow control

    def _cls(self, ins: DecodedInstruction) -> None:
        self.display.clear()

    def _ret(self, ins: DecodedInstruction) -> None:
        # Return address is the call instruction itself; the normal advance steps past it
        self.PC = self.stack.pop()

    def _jp(self, ins: DecodedInstruction) -> None:
        self.PC = ins.nnn
        self.advance_pc = False

    def _call(self, ins: DecodedInstruction) -> None:
        self.stack.push(self.registers.PC)
        self.PC = ins.nnn
        self.advance_pc = False

    def _jp_v0(self, ins: DecodedInstruction) -> None:
        self.PC = self.V[0] + ins.nnn
        self.advance_pc = False

    # Conditional skips

    def _se_byte(self, ins: DecodedInstruction) -> None:
        if self.V[ins.x] == ins.nn:
            self._skip()

    def _sne_byte(self, ins: DecodedInstruction) -> None:
        if self.V[ins.x] != ins.nn:
            self._skip()

    def _se_reg(self, ins: DecodedInstruction) -> None:
        if ins.n != 0:
            self._unknown(ins)
        elif self.V[ins.x] == self.V[ins.y]:
            self._skip()

    def _sne_reg(self, ins: DecodedInstruction) -> None:
        if ins.n != 0:
            self._unknown(ins)
        elif self.V[ins.x] != self.V[ins.y]:
            self._skip()

    # Immediate loads

    def _ld_byte(self, ins: DecodedInstruction) -> None:
        self.V[ins.x] = ins.nn

    def _add_byte(self, ins: DecodedInstruction) -> None:
        self.V[ins.x] = (self.V[ins.x] + ins.nn) & 0xFF

    def _ld_i(self, ins: DecodedInstruction) -> None:
        self.I = ins.nnn

    def _rnd(self, ins: DecodedInstruction) -> None:
        # Uniform over [0, nn] inclusive
        self.V[ins.x] = int(self.rng.integers(0, ins.nn, endpoint=True))

    # Register-register arithmetic. VF is always written last.

    def _alu_ld(self, ins: DecodedInstruction) -> None:
        self.V[ins.x] = self.V[ins.y]

    def _alu_or(self, ins: DecodedInstruction) -> None:
        self.V[ins.x] |= self.V[ins.y]

    def _alu_and(self, ins: DecodedInstruction) -> None:
        self.V[ins.x] &= self.V[ins.y]

    def _alu_xor(self, ins: DecodedInstruction) -> None:
        self.V[ins.x] ^= self.V[ins.y]

    def _alu_add(self, ins: DecodedInstruction) -> None:
        result = self.V[ins.x] + self.V[ins.y]
        self.V[ins.x] = result & 0xFF
        self.V[FLAG_REGISTER] = 1 if result > 0xFF else 0

    def _alu_sub(self, ins: DecodedInstruction) -> None:
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vx - vy) & 0xFF
        self.V[FLAG_REGISTER] = 1 if vx >= vy else 0

    def _alu_shr(self, ins: DecodedInstruction) -> None:
        vx = self.V[ins.x]
        self.V[ins.x] = vx >> 1
        self.V[FLAG_REGISTER] = vx & 0x1

    def _alu_subn(self, ins: DecodedInstruction) -> None:
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vy - vx) & 0xFF
        self.V[FLAG_REGISTER] = 1 if vy >= vx else 0

    def _alu_shl(self, ins: DecodedInstruction) -> None:
        vx = self.V[ins.x]
        self.V[ins.x] = (vx << 1) & 0xFF
        self.V[FLAG_REGISTER] = vx >> 7

    # Display

    def _drw(self, ins: DecodedInstruction) -> None:
        rows = self.memory.read_block(self.registers.I, ins.n)
        collision = self.display.draw_sprite(self.V[ins.x], self.V[ins.y], rows)
        self.V[FLAG_REGISTER] = 1 if collision else 0

    # Keypad

    def _skp(self, ins: DecodedInstruction) -> None:
        if self.keypad.is_pressed(self.V[ins.x]):
            self._skip()

    def _sknp(self, ins: DecodedInstruction) -> None:
        if not self.keypad.is_pressed(self.V[ins.x]):
            self._skip()

    def _ld_vx_k(self, ins: DecodedInstruction) -> None:
        key = self.keypad.first_pressed()
        if key is None:
            # Block: re-execute this instruction next cycle
            self.advance_pc = False
            self.waiting_for_key = True
            return
        self.waiting_for_key = False
        self.V[ins.x] = key

    # Timers

    def _ld_vx_dt(self, ins: DecodedInstruction) -> None:
        self.V[ins.x] = self.timers.delay_timer

    def _ld_dt_vx(self, ins: DecodedInstruction) -> None:
        self.timers.set_delay(self.V[ins.x])

    def _ld_st_vx(self, ins: DecodedInstruction) -> None:
        self.timers.set_sound(self.V[ins.x])

    # Index register and memory

    def _add_i_vx(self, ins: DecodedInstruction) -> None:
        self.I = self.registers.I + self.V[ins.x]

    def _ld_f_vx(self, ins: DecodedInstruction) -> None:
        self.I = FONT_START + (self.V[ins.x] & 0xF) * FONT_GLYPH_SIZE

    def _ld_b_vx(self, ins: DecodedInstruction) -> None:
        value = self.V[ins.x]
        self.memory.write_block(self.registers.I, bytes((value // 100, (value // 10) % 10, value % 10)))

    def _ld_mem_vx(self, ins: DecodedInstruction) -> None:
        self.memory.write_block(self.registers.I, bytes(self.V[:ins.x + 1]))

    def _ld_vx_mem(self, ins: DecodedInstruction) -> None:
        self.V[:ins.x + 1] = self.memory.read_block(self.registers.I, ins.x + 1)
