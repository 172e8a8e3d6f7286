# The viewhelpers project
#   Copyright (c) 2017 Ben Nuttall <https://github.com/bennuttall>
#   Copyright (c) 2017 Dave Jones <dave@waveform.org.uk>
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#     * Redistributions of source code must retain the above copyright
#       notice, this list of conditions and the following disclaimer.
#     * Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#     * Neither the name of the copyright holder nor the
#       names of its contributors may be used to endorse or promote products
#       derived from this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""
Provides the common command line handling for the console scripts in the
viewhelpers suite: a configuration-file aware argument parser, logging setup,
and a global exception handler.
"""

import sys
import logging
import traceback
from collections import OrderedDict, namedtuple

import configargparse

from . import __version__
from .form import FormError

try:
    import argcomplete
except ImportError:
    argcomplete = None


# Set up a console logging handler which just prints messages without any other
# adornments. This will be used for logging messages sent before we "properly"
# configure logging according to the user's preferences
_CONSOLE = logging.StreamHandler(sys.stderr)
_CONSOLE.setFormatter(logging.Formatter('%(message)s'))
_CONSOLE.setLevel(logging.DEBUG)
logging.getLogger().addHandler(_CONSOLE)


class ArgParser(configargparse.ArgParser):
    """
    Overrides the default ArgParser to simply raise an exception in the case
    of usage error
    """
    # pylint: disable=method-hidden
    def error(self, message):
        raise configargparse.ArgumentError(None, message)


class WidthFormatter(logging.Formatter):
    """
    Truncates formatted messages longer than *maxwidth* characters, ending
    them with *ellipsis*, so that escaping a long value does not flood the
    console.
    """
    def __init__(self, fmt=None, datefmt=None, style='%', maxwidth=120,
                 ellipsis='...'):
        super().__init__(fmt, datefmt, style)
        self.maxwidth = maxwidth
        self.ellipsis = ellipsis

    def formatMessage(self, record):
        s = super().formatMessage(record)
        if len(s) > self.maxwidth:
            s = s[:self.maxwidth - len(self.ellipsis)] + self.ellipsis
        return s


def configure_parser(description, log_params=True):
    """
    Configure an argument parser with the options common to all scripts
    (configuration file, version, and optionally the logging options) and
    return it.
    """
    parser = ArgParser(
        description=description,
        add_config_file_help=False,
        add_env_var_help=False,
        default_config_files=[
            '/etc/viewhelpers.conf',
            '/usr/local/etc/viewhelpers.conf',
            '~/.config/viewhelpers/viewhelpers.conf'
        ],
        ignore_unknown_config_file_keys=True
    )
    parser.add_argument(
        '--version', action='version', version=__version__)
    parser.add_argument(
        '-c', '--configuration', metavar='FILE', default=None,
        is_config_file=True, help='Specify a configuration file to load')
    if log_params:
        parser.set_defaults(log_level=logging.WARNING)
        parser.add_argument(
            '-q', '--quiet', dest='log_level', action='store_const',
            const=logging.ERROR, help='Only report errors')
        parser.add_argument(
            '-v', '--verbose', dest='log_level', action='store_const',
            const=logging.INFO, help='Report what is being escaped')
        parser.add_argument(
            '--debug', dest='log_level', action='store_const',
            const=logging.DEBUG, help='Report builder internals as well')
        arg = parser.add_argument(
            '-l', '--log-file', metavar='FILE',
            help='Log messages to the specified file')
        if argcomplete is not None:
            arg.completer = argcomplete.FilesCompleter(['*.log', '*.txt'])
    return parser


def configure_logging(log_level, log_filename=None):
    """
    Set the console handler (which truncates long lines) to *log_level*
    and, if *log_filename* is given, add a file handler which records
    timestamped messages at INFO or below.
    """
    _CONSOLE.setLevel(log_level)
    _CONSOLE.setFormatter(WidthFormatter('%(name)s: %(message)s'))
    root = logging.getLogger()
    root.addHandler(_CONSOLE)
    if log_filename is not None:
        log_file = logging.FileHandler(log_filename)
        log_file.setFormatter(logging.Formatter(
            '%(asctime)s %(name)s %(levelname)s: %(message)s'))
        log_file.setLevel(min(logging.INFO, log_level))
        root.addHandler(log_file)
    root.setLevel(min(logging.INFO, log_level))


ErrorAction = namedtuple('ErrorAction', ('message', 'exitcode'))


class ErrorHandler:
    """
    Exception hook for the console scripts. Each registered exception class
    maps to an :class:`ErrorAction`: *message* is either ``None`` (log
    nothing) or a callable returning the lines to log, and *exitcode* is an
    integer or a callable returning one. The first registered class matching
    the exception wins; anything unregistered is logged with its full
    traceback and exits with 1.

    Usage errors, I/O errors and :exc:`~.form.FormError` are registered by
    default as they are the user's mistake rather than a bug.
    """
    def __init__(self):
        self._actions = OrderedDict()
        self.register(SystemExit, None, lambda exc: exc.code)
        self.register(KeyboardInterrupt, None, 2)
        self.register(configargparse.ArgumentError, lambda exc: [
            str(exc), 'Try the --help option for more information.'], 2)
        self.register(IOError, lambda exc: [str(exc)], 1)
        self.register(FormError, lambda exc: [str(exc)], 1)

    def register(self, exc_class, message, exitcode):
        "Handle exceptions of *exc_class* with *message* and *exitcode*"
        self._actions[exc_class] = ErrorAction(message, exitcode)

    def __contains__(self, exc_class):
        return exc_class in self._actions

    def __getitem__(self, exc_class):
        return self._actions[exc_class]

    def __len__(self):
        return len(self._actions)

    def __call__(self, exc_type, exc_value, exc_tb):
        for exc_class, action in self._actions.items():
            if issubclass(exc_type, exc_class):
                if action.message is not None:
                    for line in action.message(exc_value):
                        logging.critical(line)
                if callable(action.exitcode):
                    return action.exitcode(exc_value)
                return action.exitcode
        for line in traceback.format_exception(exc_type, exc_value, exc_tb):
            for msg in line.rstrip().split('\n'):
                logging.critical(msg.replace('%', '%%'))
        return 1

error_handler = ErrorHandler()
