"""
diagnostics.py
Accumulates positioned lexical, syntax and semantic messages. Nothing here
ever raises: the front end keeps going and the caller decides what to do
with the generated code once translation is over.
"""

from collections import namedtuple

KIND_TAGS = {
    'lexical': 'LEX',
    'syntax': 'SYN',
    'semantic': 'SEM',
}


class Diagnostic(namedtuple('Diagnostic', ['line', 'column', 'kind', 'message'])):
    __slots__ = ()

    def __str__(self):
        return f"{self.line}:{self.column}  [{KIND_TAGS.get(self.kind, '???')}] {self.message}"


class DiagnosticSink:
    def __init__(self):
        self.items = []

    def report(self, line, column, message, kind='syntax'):
        self.items.append(Diagnostic(line, column, kind, message))

    def has_errors(self):
        return bool(self.items)

    def count(self, kind=None):
        if kind is None:
            return len(self.items)
        return sum(1 for d in self.items if d.kind == kind)

    def messages(self):
        return [str(d) for d in self.items]

    def render(self):
        return '\n'.join(self.messages())

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)
