import sys
from typing import Optional, TextIO

from ember.errors import EmberError


class BasicIO:
    """Line-oriented console I/O behind the `std.io` natives.

    Output defaults to the current `sys.stdout`, looked up on every call
    so that redirected streams are honoured. Input goes through `input()`.
    """
    def __init__(self, output: Optional[TextIO] = None):
        self.output = output

    def write_line(self, text: str) -> None:
        stream = self.output if self.output is not None else sys.stdout
        stream.write(text + '\n')

    def read_line(self) -> str:
        try:
            return input()
        except EOFError:
            raise EmberError('read from closed input') from None
