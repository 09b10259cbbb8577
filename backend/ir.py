"""
ir.py
Three-address intermediate code: the instruction record, the builder the
translator emits into, and a small interpreter for the emitted code.

Instruction shapes (blank operands are empty fields):

    copy  src  -    dst        add/sub/mul/div/mod/and/or  a  b  dst
    neg   a    -    dst        not   a    -    dst
    print a                    goto  -    -    L
    ifeq/ifne/iflt/ifle/ifgt/ifge   a  b  L      (jump to L if a REL b)
    skip  L                    (label marker, no-op)
"""

import logging
import re
from collections import namedtuple

logger = logging.getLogger(__name__)

# booleans are integers: all ones is true, zero is false
TRUE = -1
FALSE = 0

BINARY_OPS = ('add', 'sub', 'mul', 'div', 'mod', 'and', 'or')
UNARY_OPS = ('neg', 'not')
COND_JUMPS = {
    'ifeq': lambda x, y: x == y,
    'ifne': lambda x, y: x != y,
    'iflt': lambda x, y: x < y,
    'ifle': lambda x, y: x <= y,
    'ifgt': lambda x, y: x > y,
    'ifge': lambda x, y: x >= y,
}
LABEL_OP = 'skip'

MAX_STEPS = 100000


class IRExecutionError(Exception):
    """Raised when emitted code cannot be run to completion."""


class Instruction(namedtuple('Instruction', ['op', 'a', 'b', 'c'])):
    __slots__ = ()

    def __str__(self):
        return f"{self.op:<7} {self.a:<8} {self.b:<8} {self.c:<8}".rstrip()


def _operand(x):
    return '' if x is None else str(x)


class IRBuilder:
    def __init__(self):
        self.code = []
        self.temp_count = 0
        self.label_count = 0

    def new_temp(self):
        self.temp_count += 1
        return f"t{self.temp_count}"

    def new_label(self):
        self.label_count += 1
        return f"L{self.label_count}"

    def emit(self, op, a=None, b=None, c=None):
        self.code.append(Instruction(op, _operand(a), _operand(b), _operand(c)))

    def emit_label(self, label):
        self.emit(LABEL_OP, label)

    def render_all(self):
        return [str(instr) for instr in self.code]

    def get_code(self):
        return ''.join(line + '\n' for line in self.render_all())

    def __len__(self):
        return len(self.code)

    def __iter__(self):
        return iter(self.code)


# =====================================================
# IR interpreter
# =====================================================
def _wrap32(x):
    x &= 0xFFFFFFFF
    return x - 0x100000000 if x & 0x80000000 else x


def _divide(a, b):
    if b == 0:
        return 0, 0
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q, a - b * q


def _binary(op, a, b):
    if op == 'add':
        return a + b
    if op == 'sub':
        return a - b
    if op == 'mul':
        return a * b
    if op == 'div':
        return _divide(a, b)[0]
    if op == 'mod':
        return _divide(a, b)[1]
    if op == 'and':
        return a & b
    return a | b


def label_index(code):
    """Map each label to the position of its `skip` marker."""
    labels = {}
    for i, instr in enumerate(code):
        if instr.op == LABEL_OP:
            labels[instr.a] = i
    return labels


def execute_ir(code, max_steps=MAX_STEPS):
    """Run emitted instructions and return the printed values in order."""
    code = list(code)
    labels = label_index(code)
    mem = {}
    outputs = []

    def get_val(x):
        if re.fullmatch(r'-?\d+', x):
            return int(x)
        return mem.get(x, 0)

    def jump(label):
        if label not in labels:
            raise IRExecutionError(f"jump to undefined label {label}")
        return labels[label] + 1

    pc = 0
    steps = 0
    while pc < len(code):
        steps += 1
        if steps > max_steps:
            raise IRExecutionError(f"step limit of {max_steps} exceeded")
        instr = code[pc]
        op = instr.op
        if op == LABEL_OP:
            pc += 1
        elif op == 'copy':
            mem[instr.c] = get_val(instr.a)
            pc += 1
        elif op in BINARY_OPS:
            mem[instr.c] = _wrap32(_binary(op, get_val(instr.a), get_val(instr.b)))
            pc += 1
        elif op == 'neg':
            mem[instr.c] = _wrap32(-get_val(instr.a))
            pc += 1
        elif op == 'not':
            mem[instr.c] = ~get_val(instr.a)
            pc += 1
        elif op == 'print':
            outputs.append(get_val(instr.a))
            pc += 1
        elif op == 'goto':
            pc = jump(instr.c)
        elif op in COND_JUMPS:
            if COND_JUMPS[op](get_val(instr.a), get_val(instr.b)):
                pc = jump(instr.c)
            else:
                pc += 1
        else:
            raise IRExecutionError(f"unknown instruction {op!r}")
    logger.debug("executed %d steps, %d values printed", steps, len(outputs))
    return outputs
