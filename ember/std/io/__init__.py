from typing import Dict, List, Optional

from .basic_io import BasicIO
from ember.errors import TypeMismatchError
from ember.native import NativeFunction
from ember.types import UNIT, IntValue, UnitValue, Value, to_string, type_name


def populate_io_natives(basic_io: Optional[BasicIO] = None) -> Dict[str, NativeFunction]:
    """Natives for programs that declare, for example,
    `extern print_int : fun(Int) -> ();`.
    """
    if basic_io is None:
        basic_io = BasicIO()

    def std_print_int(args: List[Value]) -> Value:
        value = args[0]
        if not isinstance(value, IntValue):
            raise TypeMismatchError(f"print_int argument must be Int, got {type_name(value)}")
        basic_io.write_line(str(value.value))
        return UNIT

    def std_print(args: List[Value]) -> Value:
        basic_io.write_line(to_string(args[0]))
        return UNIT

    def std_print_unit(args: List[Value]) -> Value:
        value = args[0]
        if not isinstance(value, UnitValue):
            raise TypeMismatchError(f"print_unit argument must be (), got {type_name(value)}")
        basic_io.write_line('()')
        return UNIT

    def std_read_int(args: List[Value]) -> Value:
        line = basic_io.read_line().strip()
        try:
            return IntValue(int(line))
        except ValueError:
            raise TypeMismatchError(f"read_int expected an integer, got {line!r}") from None

    return {
        'print_int': NativeFunction('print_int', 1, std_print_int),
        'print': NativeFunction('print', 1, std_print),
        'print_unit': NativeFunction('print_unit', 1, std_print_unit),
        'read_int': NativeFunction('read_int', 0, std_read_int),
    }
