"""
Commandflow dispatch state: the caller namespace and the per-invocation context.

- Namespace: the accessor. An opaque caller identity that also works as a small
  object bag keyed by (type, name); the manager stores a back-reference to itself
  there so parts deep in the tree can reach the authorizer.
- CommandContext: mutable scratch space of one dispatch. It accumulates the values
  bound by each part (keyed by the part's name) and the resolved command path
  with the labels that were typed for each level.

Contexts are created fresh per dispatch and never shared between dispatches.
"""
from .utils import mirror


class Namespace:
    """
    caller identity plus typed object storage.

    Example
        >>> accessor = Namespace()
        >>> accessor.set_object(str, "sender", "console")
        >>> accessor.get_object(str, "sender")
        'console'
    """

    def __init__(self, **objects):
        self._objects = {}
        for name, object in objects.items():
            self.set_object(type(object), name, object)

    def get_object(self, type, name, /, default=None):
        return self._objects.get((type, name), default)

    def set_object(self, type, name, object, /):
        if object is not None and not isinstance(object, type):
            raise TypeError("set_object() object must be an instance of %s" % type.__name__)
        self._objects[(type, name)] = object

    def __contains__(self, key):
        return key in self._objects

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, ", ".join(name for _, name in self._objects))


def _key(part):
    """
    resolve the lookup key of a part (its name) or accept a raw string key.
    """
    if isinstance(part, str):
        return part
    try:
        return part.name
    except AttributeError:
        raise TypeError("context keys must be a command part or a string") from None


class CommandContext:
    """
    values and resolution path collected while parsing one input.

    - values: name -> list of bound values (a part may bind zero, one or many).
    - commands / labels: the resolved command path, root first, and the token typed
      for each level (the primary name or the alias actually used).
    - command / label: the deepest resolved command and its label.
    """

    arguments = mirror("arguments")
    commands = mirror("commands")
    labels = mirror("labels")

    def __init__(self, accessor, arguments=(), /):
        self.accessor = accessor
        self._arguments = tuple(arguments)
        self._commands = []
        self._labels = []
        self._values = {}

    @property
    def command(self):
        return self._commands[-1] if self._commands else None

    @property
    def label(self):
        return self._labels[-1] if self._labels else None

    @property
    def values(self):
        return {key: list(values) for key, values in self._values.items()}

    def set_command(self, command, label, /):
        self._commands.append(command)
        self._labels.append(label)

    def set_value(self, part, values, /):
        self._values[_key(part)] = list(values)

    def has(self, part, /):
        return _key(part) in self._values

    def get_values(self, part, /):
        return list(self._values.get(_key(part), ()))

    def get_value(self, part, /, default=None):
        values = self._values.get(_key(part))
        return values[0] if values else default

    def fork(self):
        """
        scratch copy for a tentative parse: same accessor and path, no values.
        """
        scratch = type(self)(self.accessor, self._arguments)
        scratch._commands = list(self._commands)
        scratch._labels = list(self._labels)
        return scratch

    def absorb(self, scratch, /, values=True):
        """
        commit the bindings of a scratch context made by fork().

        with values=False only the command path is taken over.
        """
        depth = len(self._commands)
        if scratch._commands[:depth] != self._commands:
            raise ValueError("absorb() scratch context was not forked from this context")
        if values:
            self._values.update(scratch._values)
        self._commands.extend(scratch._commands[depth:])
        self._labels.extend(scratch._labels[depth:])

    def __repr__(self):
        return "%s(labels=%r, values=%r)" % (type(self).__name__, self._labels, self._values)


__all__ = (
    "Namespace",
    "CommandContext",
)
