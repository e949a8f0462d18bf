'''Snapshot serialization of election objects to JSON-ready dictionaries.

Records, notifications and whole elections can be turned into plain
dictionaries with :func:`to_dict` and recreated with :func:`from_dict`.
Objects are tagged with their scoped class name (``class``) and values JSON
has no notation for (tuples, frozensets, workflow phases, mappings with
non-string keys) with their type name (``type``), so that the right objects
are reconstructed on load.
'''

import sys
import enum
import inspect
import importlib
from typing import Any, List, Dict


BUILTIN_TYPES: Dict[str, type] = {
    'dict': dict,
    'tuple': tuple,
    'frozenset': frozenset,
}

ATOMIC_TYPES: List[type] = [
    str, int, float, bool, type(None),
]


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The attributes serialized are those listed in the ``serialize_params``
    class attribute or, if there is none, those named by the constructor
    parameters. The class must accept all of them back as constructor
    keyword arguments.

    :param class_: The class to add the method to.
    '''
    if hasattr(class_, 'serialize_params'):
        param_names = list(class_.serialize_params)
    else:
        param_names = [
            name for name in inspect.signature(class_.__init__).parameters
            if name != 'self'
        ]

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': scoped_class_name(self)}
        for attr in param_names:
            out_dict[attr] = serialize_value(getattr(self, attr))
        return out_dict

    class_.to_dict = to_dict
    return class_


def serialize_value(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif isinstance(value, enum.Enum):
        # checked before atomic types since IntEnum members are ints
        return {'type': scoped_class_name(value), 'value': value.value}
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    elif isinstance(value, (tuple, frozenset)):
        return {
            'type': type(value).__name__,
            'value': [serialize_value(item) for item in value],
        }
    elif isinstance(value, dict):
        if all(isinstance(key, str) for key in value.keys()):
            return {key: serialize_value(val) for key, val in value.items()}
        else:
            return {
                'type': 'dict',
                'keys': [serialize_value(key) for key in value.keys()],
                'values': [serialize_value(val) for val in value.values()]
            }
    elif isinstance(value, list):
        return [serialize_value(item) for item in value]
    else:
        raise ValueError(f'cannot serialize {value!r} to dict format')


def deserialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        if 'type' in value and is_scoped_identifier(value['type']):
            return deserialize_typed(value)
        elif 'class' in value and is_scoped_identifier(value['class']):
            return deserialize_class(value)
        else:
            return {key: deserialize_value(val) for key, val in value.items()}
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    elif isinstance(value, list):
        return [deserialize_value(val) for val in value]
    else:
        raise ValueError(f'cannot deserialize {value!r}, type unknown')


def deserialize_typed(typedef: Dict[str, Any]) -> Any:
    typeobj = get_object(typedef['type'])
    if typeobj is dict:
        return dict(zip(
            [deserialize_value(key) for key in typedef['keys']],
            [deserialize_value(val) for val in typedef['values']]
        ))
    elif 'value' in typedef:
        return typeobj(deserialize_value(typedef['value']))
    else:
        raise ValueError(f'invalid typed value contents: {typedef!r}')


def deserialize_class(clsdef: Dict[str, Any]) -> Any:
    cls = get_object(clsdef['class'])
    params = {key: val for key, val in clsdef.items() if key != 'class'}
    if hasattr(cls, 'from_dict'):
        return cls.from_dict(params)
    else:
        return cls(**{
            key: deserialize_value(val) for key, val in params.items()
        })


def get_object(identifier: str) -> Any:
    '''Resolve a type name or a dotted votingflow name to the object.'''
    if identifier in BUILTIN_TYPES:
        return BUILTIN_TYPES[identifier]
    elif '.' not in identifier:
        raise ValueError(f'unknown type name: {identifier!r}')
    module, name = identifier.rsplit('.', 1)
    if module not in sys.modules:
        importlib.import_module(module)
    return getattr(sys.modules[module], name)


def from_dict(value: Dict[str, Any]) -> Any:
    """Recreate an election object from a JSON-like dictionary.

    :param value: A dictionary created by :func:`to_dict`.
    """
    if not isinstance(value, dict):
        raise ValueError('invalid votingflow object def: dict expected, '
                         f'got {value!r}')
    elif 'class' not in value:
        raise ValueError('invalid votingflow object def: must have a class key')
    elif not is_scoped_identifier(value['class']):
        inval_cls = value['class']
        raise ValueError(f"invalid votingflow class def: {inval_cls}")
    else:
        return deserialize_value(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize an election object to a JSON-ready dictionary.

    :param obj: An election, record or notification object; all of them
        provide a `to_dict()` method.
    """
    return serialize_value(obj)


def is_scoped_identifier(value: Any):
    return (
        isinstance(value, str)
        and not value.startswith('.')
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def scoped_class_name(value: Any):
    cls = value.__class__
    return '.'.join((cls.__module__, cls.__name__))
