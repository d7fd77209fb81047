'''Serialization of strategies and results to JSON-ready dictionaries.

Strategies and their components are serialized by the arguments of their
constructor under the name of their class, so that :func:`from_dict` can
rebuild the same strategy from a stored configuration. Result records
(dataclasses) are serialized field by field and are not meant to be rebuilt.

Exact numbers survive the trip: integral fractions are stored as integers,
other fractions and decimals as small typed objects.
'''

import inspect
import importlib
import dataclasses
from fractions import Fraction
from decimal import Decimal
from typing import Any, Callable, Dict, Tuple


PLAIN_TYPES: Tuple[type, ...] = (str, int, float, bool, type(None))


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a to_dict() method serializing the constructor.

    The method outputs the scoped class name and the attributes named after
    the constructor parameters, which the class must therefore keep in
    a form its constructor accepts. A class may list the attributes to
    serialize in a ``serialize_params`` attribute instead.

    :param class_: The class to add the method to.
    '''
    param_names = getattr(class_, 'serialize_params', None)
    if param_names is None:
        param_names = [
            name for name, param
            in inspect.signature(class_.__init__).parameters.items()
            if name != 'self' and param.kind not in (
                param.VAR_POSITIONAL, param.VAR_KEYWORD
            )
        ]

    def to_dict(self) -> Dict[str, Any]:
        out = {'class': scoped_class_name(self)}
        for name in param_names:
            out[name] = serialize_value(getattr(self, name))
        return out

    class_.to_dict = to_dict
    return class_


def serialize_value(value: Any) -> Any:
    '''Convert a value into plain JSON-compatible types.'''
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, PLAIN_TYPES):
        return value
    converter = CONVERTERS.get(type(value))
    if converter is not None:
        return converter(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return record_to_json(value)
    if isinstance(value, dict):
        # identifiers become JSON object keys
        return {str(key): serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(val) for val in value]
    if callable(value):
        return {'callable': f'{value.__module__}.{value.__name__}'}
    raise ValueError(f'cannot serialize {value!r} to dict format')


def record_to_json(record: Any) -> Dict[str, Any]:
    '''Serialize the compared fields of a dataclass instance.'''
    return {
        field.name: serialize_value(getattr(record, field.name))
        for field in dataclasses.fields(record)
        if field.compare
    }


def deserialize_value(value: Any) -> Any:
    if isinstance(value, PLAIN_TYPES):
        return value
    elif isinstance(value, list):
        return [deserialize_value(val) for val in value]
    elif not isinstance(value, dict):
        raise ValueError(f'cannot deserialize {value!r}, type unknown')
    elif 'class' in value:
        return deserialize_class(value)
    elif 'type' in value:
        return deserialize_typed(value)
    elif 'callable' in value:
        return import_object(value['callable'])
    else:
        return {key: deserialize_value(val) for key, val in value.items()}


def deserialize_typed(typedef: Dict[str, Any]) -> Any:
    try:
        type_ = TYPES[typedef['type']]
    except KeyError:
        raise ValueError(f'unknown serialized type: {typedef!r}') from None
    if 'value' in typedef:
        return type_(typedef['value'])
    elif 'arguments' in typedef:
        return type_(*typedef['arguments'])
    else:
        raise ValueError(f'invalid typed value contents: {typedef!r}')


def deserialize_class(clsdef: Dict[str, Any]) -> Any:
    cls = import_object(clsdef['class'])
    return cls(**{
        key: deserialize_value(val)
        for key, val in clsdef.items() if key != 'class'
    })


def import_object(identifier: str) -> Any:
    '''Return a module-level object by its fully qualified name.'''
    if not is_scoped_identifier(identifier) or '.' not in identifier:
        raise ValueError(f'invalid qualified name: {identifier!r}')
    module_name, name = identifier.rsplit('.', 1)
    try:
        return getattr(importlib.import_module(module_name), name)
    except (ImportError, AttributeError) as err:
        raise ValueError(f'cannot find {identifier}: {err}') from err


def from_dict(value: Dict[str, Any]) -> Any:
    '''Rebuild a calculation strategy or component from its dictionary.

    :param value: A dictionary created by :func:`to_dict`.
    :raises ValueError: If the dictionary does not describe a seatlib object.
    '''
    if not isinstance(value, dict):
        raise ValueError(f'invalid seatlib object def: dict expected, '
                         f'got {value!r}')
    if 'class' not in value:
        raise ValueError('invalid seatlib object def: must have a class key')
    return deserialize_class(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    '''Serialize a strategy or an election result to a JSON-ready dictionary.

    :param obj: A strategy or component (providing a `to_dict()` method
        courtesy of the simple_serialization decorator), a result record or
        a plain container of those.
    '''
    return serialize_value(obj)


def is_scoped_identifier(value: Any) -> bool:
    return (
        isinstance(value, str)
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def scoped_class_name(value: Any) -> str:
    cls = value.__class__
    return f'{cls.__module__}.{cls.__name__}'


def fraction_to_json(f: Fraction) -> Any:
    if f.denominator == 1:
        return f.numerator
    return {'type': 'Fraction', 'arguments': [f.numerator, f.denominator]}


def decimal_to_json(d: Decimal) -> Dict[str, Any]:
    return {'type': 'Decimal', 'value': str(d)}


CONVERTERS: Dict[type, Callable[[Any], Any]] = {
    Fraction: fraction_to_json,
    Decimal: decimal_to_json,
}

TYPES: Dict[str, type] = {
    'Fraction': Fraction,
    'Decimal': Decimal,
}
