"""
Column name inference for record fields without an explicit column name.
"""
import re

_FIELD_NAME_RE = re.compile(r'([A-Z]+)([^A-Z]*)')


def default_column_name(field_name: str) -> str:
    """Infer a database column name from a field name.

    The name is split into words at case transitions and lower-cased. A run
    of capitals followed by lowercase letters is treated as an acronym whose
    last capital starts the next word.

    >>> default_column_name('Foo')
    'foo'
    >>> default_column_name('FooBarBaz')
    'foo_bar_baz'
    >>> default_column_name('JSONThing')
    'json_thing'
    >>> default_column_name('FooJSONThing')
    'foo_json_thing'
    >>> default_column_name('FooXBar')
    'foo_x_bar'

    Names that are already snake_case come back unchanged.

    >>> default_column_name('created_at')
    'created_at'
    >>> default_column_name('userID')
    'user_id'
    """
    first = _FIELD_NAME_RE.search(field_name)
    if first is None:
        return field_name

    parts = [field_name[:first.start()]] if first.start() else []
    for head, tail in _FIELD_NAME_RE.findall(field_name):
        if len(head) > 1 and tail:
            parts.append(head[:-1].lower())
            head = head[-1]
        parts.append(head.lower() + tail)
    return '_'.join(parts)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
