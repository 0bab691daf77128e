# ################################################################################################ #
# AccuRev utilities error types                                                                    #
#                                                                                                  #
# Build and query operations never let these escape. They are logged, stored on the collection     #
# that was being built and converted into the boolean/None result of the operation.                #
# ################################################################################################ #

class AcUtilsError(Exception):
    pass

class CommandError(AcUtilsError):
    def __init__(self, message, command=None):
        super().__init__(message)
        self.command = command

class ToolInvocationError(CommandError):
    pass

class CommandTimeoutError(CommandError):
    def __init__(self, message, command=None, timeout=None):
        super().__init__(message, command)
        self.timeout = timeout

class ToolDomainError(CommandError):
    def __init__(self, result):
        message = "AccuRev program return: {0}\naccurev {1}".format(result.retval, result.commandline())
        # accurev writes some of its diagnostics to stdout
        diagnostic = result.stderr.strip() or result.stdout.strip()
        if diagnostic:
            message += "\n" + diagnostic
        super().__init__(message, result.command)
        self.result = result

class ParseError(AcUtilsError):
    pass

class DuplicateKeyError(AcUtilsError):
    def __init__(self, what, key, count):
        super().__init__("{0} lookup by {1!r} matched {2} records".format(what, key, count))
        self.what = what
        self.key = key
        self.count = count

class EnrichmentError(AcUtilsError):
    pass
