# ################################################################################################ #
# Logging set-up for programs built on acutils                                                     #
#                                                                                                  #
# The library modules only create child loggers of 'acutils'. A program calls InitializeLogging()  #
# once to decide where the messages go.                                                            #
# ################################################################################################ #

import logging

_initialized = False

def InitializeLogging(filename=None, level=logging.INFO):
    global _initialized
    if not _initialized:
        logger = logging.getLogger('acutils')
        logger.setLevel(level)

        consoleHandler = logging.StreamHandler()
        consoleHandler.setLevel(level)

        consoleFormatter = logging.Formatter('%(message)s')
        consoleHandler.setFormatter(consoleFormatter)

        logger.addHandler(consoleHandler)

        if filename is not None:
            fileHandler = logging.FileHandler(filename=filename)
            fileHandler.setLevel(level)

            fileFormatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            fileHandler.setFormatter(fileFormatter)

            logger.addHandler(fileHandler)

        _initialized = True
        return True
    return False

def ShutdownLogging():
    """Removes the handlers InitializeLogging() added so that it can be called again."""
    global _initialized
    logger = logging.getLogger('acutils')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _initialized = False
