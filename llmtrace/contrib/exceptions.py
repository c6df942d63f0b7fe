class PatchException(Exception):
    """Base class of the errors reported while activating integrations."""


class DuplicateNameError(PatchException, ValueError):
    """Raised when two integrations are registered under the same name."""

    def __init__(self, name):
        super().__init__("integration %r is already registered" % (name,))
        self.name = name


def describe_scope(target):
    if target is None:
        return "class-wide"
    return "instance %s@%#x" % (type(target).__name__, id(target))


class _CaughtFailure(PatchException):
    """An exception caught inside the activation machinery.

    These are never raised to callers. They are built around the original
    error so that the log record names the failing integration and scope.
    """

    def __init__(self, name, where, error):
        super().__init__("%s: %s (%s): %s: %s" % (type(self).__name__, name, where, type(error).__name__, error))
        self.name = name
        self.error = error


class ApplicabilityError(_CaughtFailure):
    """Evaluating whether a patcher applies raised. The patcher is treated as not applicable."""

    def __init__(self, name, target, error):
        super().__init__(name, describe_scope(target), error)
        self.target = target


class ActivationFailure(_CaughtFailure):
    """The side effect of a patcher raised. The patcher stays inactive for that scope."""

    def __init__(self, name, target, error):
        super().__init__(name, describe_scope(target), error)
        self.target = target


class InterceptionFailure(_CaughtFailure):
    """Processing one integration for an import event raised."""

    def __init__(self, name, module_name, error):
        super().__init__(name, "import of %s" % module_name, error)
        self.module_name = module_name
