'''Registers of interchangeable components.

Quotient functions, remainder tie-breaks and calculation strategies are each
kept in a :class:`Register`, keyed by the names used in election
configuration, so that a configured name can be turned into the component.
'''

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterator, Tuple, Union


class Register(Mapping):
    '''A read-only mapping of component names to components.

    Components are added by the :meth:`mark` decorator, under their ``key``
    attribute if they have one and under their ``__name__`` otherwise.

    :param kind: What the register holds, for error messages.
    '''
    def __init__(self, kind: str):
        self.kind = kind
        self._components: Dict[str, Any] = {}

    def mark(self, component: Any) -> Any:
        self._components[getattr(component, 'key', component.__name__)] = (
            component
        )
        return component

    def lookup(self, name: str) -> Any:
        '''Return a component by its name.

        :raises KeyError: If no component is registered under the name.
        '''
        try:
            return self._components[name]
        except (KeyError, TypeError):
            raise KeyError(
                f'unknown {self.kind}: {name!r}, available: '
                + ', '.join(sorted(self._components))
            ) from None

    def construct(self, component: Union[str, Callable]) -> Any:
        '''Resolve a component given by name; pass callables through.'''
        if callable(component):
            return component
        return self.lookup(component)

    def __getitem__(self, name: str) -> Any:
        return self._components[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __repr__(self) -> str:
        return f'<Register of {self.kind}: {", ".join(self._components)}>'


def register_functions(register: Register
                       ) -> Tuple[Callable, Callable, Callable]:
    '''Return the marker, getter and constructer functions of a register.'''
    return register.mark, register.lookup, register.construct
