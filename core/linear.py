"""Move-only values: objects that may change hands but never be duplicated."""


class Linear:
    """Mixin that refuses every implicit copy path.

    Subclasses are handed from holder to holder by reference. Copying,
    deep-copying and pickling all raise ``TypeError`` so a second live
    instance can never be produced outside the code that owns the type.
    """

    __slots__ = ()

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} cannot be copied.")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} cannot be copied.")

    def __reduce_ex__(self, protocol):
        raise TypeError(f"{type(self).__name__} cannot be serialized.")
