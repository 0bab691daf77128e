# ################################################################################################ #
# acutils command line tool                                                                        #
#                                                                                                  #
# Lists AccuRev objects (depots, streams, workspaces, users, locks, rules, history, sessions) one  #
# record per line. Configuration is read from `<script>.config.xml` unless -c is given.            #
# ################################################################################################ #

import sys
import asyncio
import logging
import argparse
from datetime import datetime

import pytz

from acutils import command
from acutils import acdatetime
from acutils import query
from acutils.log import InitializeLogging
from acutils.config import Config
from acutils.depots import Depots
from acutils.workspaces import Workspaces
from acutils.users import Users
from acutils.locks import Locks
from acutils.rules import Rules
from acutils.hist import Hist
from acutils.sessions import Sessions
from acutils.errors import AcUtilsError

logger = logging.getLogger('acutils.cli')

def PrintRecords(records):
    for record in sorted(records):
        print(record)

# ################################################################################################ #
# Subcommands                                                                                      #
# ################################################################################################ #
async def _LoadDepotsAsync(config, names=None):
    depots = Depots(dynamicOnly=config.dynamicOnly, includeHidden=config.includeHidden, timeout=config.accurev.timeout)
    if names is None and len(config.depots) > 0:
        names = config.depots
    if not await depots.init_async(depots=names):
        return None
    return depots

async def DepotsCommand(args, config):
    depots = await _LoadDepotsAsync(config)
    if depots is None:
        return False
    PrintRecords(depots)
    return True

async def StreamsCommand(args, config):
    depots = await _LoadDepotsAsync(config, [ args.depot ])
    if depots is None:
        return False
    depot = depots.get_depot(args.depot)
    if depot is None:
        logger.error("Depot {0} not found.".format(args.depot))
        return False
    PrintRecords(depot.streams)
    return True

async def ChildrenCommand(args, config):
    depots = await _LoadDepotsAsync(config, [ args.depot ])
    if depots is None:
        return False
    depot = depots.get_depot(args.depot)
    stream = depot.get_stream(args.stream) if depot is not None else None
    if stream is None:
        logger.error("Stream {0} not found in depot {1}.".format(args.stream, args.depot))
        return False

    if args.recursive:
        return await depot.for_stream_and_all_children_async(stream, print, includeWSpaces=args.workspaces)

    found, children = await depot.get_children_async(stream, includeWSpaces=args.workspaces)
    if found is None:
        return False
    PrintRecords(children)
    return True

async def WorkspacesCommand(args, config):
    depots = await _LoadDepotsAsync(config)
    if depots is None:
        return False
    workspaces = Workspaces(depots, allWSpaces=args.all, includeHidden=config.includeHidden, includeRefTrees=args.refs, timeout=config.accurev.timeout)
    if not await workspaces.init_async():
        return False
    PrintRecords(workspaces)
    return True

async def UsersCommand(args, config):
    users = Users(domains=config.domains, properties=config.properties, includeGroupsList=args.groups,
                  includeDeactivated=args.deactivated, timeout=config.accurev.timeout)
    names = config.users if len(config.users) > 0 else None
    if not await users.init_async(users=names):
        return False
    for user in sorted(users):
        if args.groups:
            print("{0}: {1}".format(user, user.get_groups()))
        else:
            print(user)
    return True

async def LocksCommand(args, config):
    streams = config.streams if len(config.streams) > 0 else None
    locks = Locks(streams=streams, timeout=config.accurev.timeout)
    if not await locks.init_async():
        return False
    PrintRecords(locks)
    return True

async def RulesCommand(args, config):
    rules = Rules(explicitOnly=args.explicit, timeout=config.accurev.timeout)
    if not await rules.init_for_streams_async(args.streams):
        return False
    PrintRecords(set(rules))
    return True

async def HistCommand(args, config):
    hist = Hist(depot=args.depot, timeout=config.accurev.timeout)
    if not await hist.init_async(stream=args.stream, timeSpec=args.timeSpec, transKind=args.kind, username=args.user):
        return False
    PrintRecords(hist)
    return True

async def SessionsCommand(args, config):
    sessions = Sessions(timeout=config.accurev.timeout)
    if not await sessions.init_async():
        return False
    PrintRecords(sessions)
    return True

async def WhoAmICommand(args, config):
    principal = await query.get_principal_async(timeout=config.accurev.timeout)
    if principal is None:
        logger.error("Not logged in.")
        return False
    print(principal)
    return True

async def RunCommandAsync(args, config):
    if config.accurev.username is not None and config.accurev.password is not None:
        if not await command.login(config.accurev.username, config.accurev.password, timeout=config.accurev.timeout):
            logger.error("Failed to log in as {0}.".format(config.accurev.username))
            return False
    return await args.func(args, config)

# ################################################################################################ #
# Script Main                                                                                      #
# ################################################################################################ #
def SetConfigFromArgs(config, args):
    if args.maxConcurrent is not None:
        config.accurev.maxConcurrent = args.maxConcurrent
    if args.timeout is not None:
        config.accurev.timeout = args.timeout
    if args.logFile is not None:
        config.logging.filename = args.logFile

def ApplyConfig(config):
    if config.accurev.executable is not None:
        command.set_executable(config.accurev.executable)
    if config.accurev.maxConcurrent is not None:
        command.set_max_concurrent(config.accurev.maxConcurrent)
    command.set_default_timeout(config.accurev.timeout)
    acdatetime.set_timezone(config.logging.timezone)

def AcUtilsMain(argv):
    configFilename = Config.FilenameFromScriptName(argv[0])

    parser = argparse.ArgumentParser(prog='acutils', description="Lists AccuRev depots, streams, workspaces, users, locks, rules, history and sessions. Configuration of the script is done with an optional configuration file whose filename is `{0}` by default. Command line arguments, if given, override the equivalent options in the configuration file.".format(configFilename))
    parser.add_argument('-c', '--config', dest='configFilename', default=None, metavar='<config-filename>', help="The XML configuration file for this script. By default this filename is set to be `{0}` and it is used if it exists.".format(configFilename))
    parser.add_argument('-v', '--verbose', dest='debug', action='store_const', const=True, help="Print the script debug information. Makes the script more verbose.")
    parser.add_argument('-L', '--log-file', dest='logFile', metavar='<log-filename>', help="Sets the filename to which all console output will be logged (console output is still printed).")
    parser.add_argument('-j', '--max-concurrent', dest='maxConcurrent', type=int, metavar='<count>', help="The maximum number of accurev commands that are run at the same time. Defaults to {0}.".format(command.DEFAULT_MAX_CONCURRENT))
    parser.add_argument('-t', '--timeout', dest='timeout', type=float, metavar='<seconds>', help="Abandon any accurev command that takes longer than this many seconds.")

    subparsers = parser.add_subparsers(dest='command', metavar='<command>')
    subparsers.required = True

    depotsParser = subparsers.add_parser('depots', help="List the depots.")
    depotsParser.set_defaults(func=DepotsCommand)

    streamsParser = subparsers.add_parser('streams', help="List the streams of a depot.")
    streamsParser.add_argument('depot', metavar='<depot>')
    streamsParser.set_defaults(func=StreamsCommand)

    childrenParser = subparsers.add_parser('children', help="List the child streams of a stream.")
    childrenParser.add_argument('depot', metavar='<depot>')
    childrenParser.add_argument('stream', metavar='<stream>')
    childrenParser.add_argument('-r', '--recursive', dest='recursive', action='store_true', help="List the stream and all of its descendants.")
    childrenParser.add_argument('-w', '--workspaces', dest='workspaces', action='store_true', help="Include workspaces.")
    childrenParser.set_defaults(func=ChildrenCommand)

    workspacesParser = subparsers.add_parser('workspaces', help="List the workspaces in the configured depots.")
    workspacesParser.add_argument('-a', '--all', dest='all', action='store_true', help="List the workspaces of every user, not just yours.")
    workspacesParser.add_argument('--refs', dest='refs', action='store_true', help="Include reference trees.")
    workspacesParser.set_defaults(func=WorkspacesCommand)

    usersParser = subparsers.add_parser('users', help="List the users.")
    usersParser.add_argument('-g', '--groups', dest='groups', action='store_true', help="Include the groups each user belongs to.")
    usersParser.add_argument('-d', '--deactivated', dest='deactivated', action='store_true', help="Include deactivated users.")
    usersParser.set_defaults(func=UsersCommand)

    locksParser = subparsers.add_parser('locks', help="List the stream locks.")
    locksParser.set_defaults(func=LocksCommand)

    rulesParser = subparsers.add_parser('rules', help="List the include/exclude rules of streams.")
    rulesParser.add_argument('streams', nargs='+', metavar='<stream>')
    rulesParser.add_argument('-x', '--explicit', dest='explicit', action='store_true', help="Only list the rules set on the streams themselves.")
    rulesParser.set_defaults(func=RulesCommand)

    histParser = subparsers.add_parser('hist', help="List the transactions of a depot.")
    histParser.add_argument('depot', metavar='<depot>')
    histParser.add_argument('-s', '--stream', dest='stream', metavar='<stream>')
    histParser.add_argument('-t', '--time-spec', dest='timeSpec', metavar='<time-spec>', help="An AccuRev time spec, e.g. 'now.10' or '2016/01/01 00:00:00-now'.")
    histParser.add_argument('-k', '--kind', dest='kind', metavar='<transaction-kind>')
    histParser.add_argument('-u', '--user', dest='user', metavar='<user>')
    histParser.set_defaults(func=HistCommand)

    sessionsParser = subparsers.add_parser('sessions', help="List the active login sessions.")
    sessionsParser.set_defaults(func=SessionsCommand)

    whoamiParser = subparsers.add_parser('whoami', help="Print the logged in principal.")
    whoamiParser.set_defaults(func=WhoAmICommand)

    args = parser.parse_args(argv[1:])

    # Load the config file
    try:
        if args.configFilename is not None:
            config = Config.fromfile(filename=args.configFilename)
            if config is None:
                sys.stderr.write("Config file '{0}' not found.\n".format(args.configFilename))
                return 1
        else:
            config = Config.fromfile(filename=configFilename)
            if config is None:
                config = Config()
    except AcUtilsError as e:
        sys.stderr.write("Invalid config file: {0}\n".format(e))
        return 1

    SetConfigFromArgs(config=config, args=args)

    loggingLevel = logging.DEBUG if args.debug else getattr(logging, config.logging.level, logging.INFO)
    InitializeLogging(config.logging.filename, loggingLevel)

    try:
        ApplyConfig(config)
    except (ValueError, pytz.UnknownTimeZoneError) as e:
        logger.error("Invalid configuration: {0}".format(e))
        return 1

    startTime = datetime.now()
    ok = asyncio.run(RunCommandAsync(args, config))
    logger.debug("Running time was {0}".format(datetime.now() - startTime))

    return 0 if ok else 1

def main():
    return AcUtilsMain(sys.argv)

# ################################################################################################ #
# Script Start                                                                                     #
# ################################################################################################ #
if __name__ == "__main__":
    sys.exit(main())
