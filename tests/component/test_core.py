import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
from seatlib.component.core import Register, register_functions


def test_register():
    register = Register('widget')
    mark, get, construct = register_functions(register)

    @mark
    def plain():
        return 1

    @mark
    class Keyed:
        key = 'keyed'

    assert dict(register) == {'plain': plain, 'keyed': Keyed}
    assert len(register) == 2
    assert get('plain') is plain
    assert construct('keyed') is Keyed
    assert construct(len) is len
    with pytest.raises(KeyError) as excinfo:
        get('Keyed')
    assert 'unknown widget' in str(excinfo.value)
    with pytest.raises(KeyError):
        construct([])
