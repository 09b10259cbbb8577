"""
symtab.py
Block-structured symbol table: a stack of frames mapping names to types,
plus the log of every declaration made (dumped to symbols.txt).
"""

import logging
from collections import namedtuple
from enum import Enum

logger = logging.getLogger(__name__)


class Type(Enum):
    INT = 'int'
    BOOL = 'bool'
    CHAR = 'char'
    ERROR = 'error'  # absorbing: already reported, never report again

    def __str__(self):
        return self.name


class SymbolEntry(namedtuple('SymbolEntry', ['scope', 'name', 'type'])):
    __slots__ = ()

    def __str__(self):
        return f"SCOPE {self.scope}  {self.name:<12} : {self.type}"


class ScopeTable:
    def __init__(self):
        # frames[-1] is the innermost block
        self.frames = []
        self.history = []

    @property
    def depth(self):
        """Level of the innermost open block; the outermost is 0, none open is -1."""
        return len(self.frames) - 1

    def enter_scope(self):
        self.frames.append({})
        logger.debug("enter scope %d", self.depth)

    def exit_scope(self):
        if not self.frames:
            return
        logger.debug("exit scope %d (%d names)", self.depth, len(self.frames[-1]))
        self.frames.pop()

    def declare(self, name, typ):
        if not self.frames:
            self.enter_scope()
        top = self.frames[-1]
        if name in top:
            return False
        top[name] = typ
        self.history.append(SymbolEntry(self.depth, name, typ))
        return True

    def lookup(self, name):
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        return None

    def dump(self):
        lines = ["SYMBOL TABLE (insertion order)", "-" * 32]
        lines.extend(str(e) for e in self.history)
        return '\n'.join(lines) + '\n'
