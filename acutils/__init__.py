# ################################################################################################ #
# acutils: an object model over the AccuRev command line client                                    #
# ################################################################################################ #

__version__ = "0.1.0"
