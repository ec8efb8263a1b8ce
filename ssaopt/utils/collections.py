""" Collection types the standard library lacks. """

from collections.abc import MutableSet


class OrderedSet(MutableSet):
    """ Set which iterates in the order elements were first added.

    The elements are kept as the keys of a dict, which preserves
    insertion order.
    """
    def __init__(self, iterable=()):
        self._items = dict.fromkeys(iterable)

    def __contains__(self, item):
        return item in self._items

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def add(self, item):
        self._items[item] = None

    def discard(self, item):
        self._items.pop(item, None)

    def __repr__(self):
        return 'OrderedSet({!r})'.format(list(self))
