""" Errors raised while checking and optimizing ir code. """


class CompilerError(Exception):
    """ Base class of all errors of this package """
    def __init__(self, msg):
        super().__init__(msg)
        self.msg = msg


class IrFormError(CompilerError):
    """ The ir code is not well formed """
    pass


class MissingAnalysisError(CompilerError):
    """ A pass was run without an analysis it depends on """
    pass
