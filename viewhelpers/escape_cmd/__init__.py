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
Contains the functions that implement the :program:`vh-escape` script.

.. autofunction:: main

.. autofunction:: escape
"""

import sys
import logging

from .. import __version__, terminal
from ..escape import (
    escape_html,
    escape_html_attribute,
    escape_html_attribute_hex,
    escape_url,
    DEFAULT_URL_SCHEMES,
)


MODES = {
    'text':           lambda value, schemes: escape_html(value),
    'attribute':      lambda value, schemes: escape_html_attribute(value),
    'attribute-hex':  lambda value, schemes: escape_html_attribute_hex(value),
    'url':            escape_url,
}


def main(args=None):
    """
    This is the main function for the :program:`vh-escape` script. It escapes
    each of its arguments (or each line of stdin if there are none) for the
    selected HTML context and prints the result.
    """
    sys.excepthook = terminal.error_handler
    logging.getLogger().name = 'escape'
    parser = terminal.configure_parser("""\
The vh-escape script escapes values for inclusion in an HTML document, exactly
as the view helpers would. Values are taken from the command line or, if none
are given, one per line from stdin.
""")
    parser.add_argument(
        'values', nargs='*', metavar='VALUE',
        help="The value(s) to escape")
    parser.add_argument(
        '-m', '--mode', choices=sorted(MODES), default='text',
        help="The context to escape for (default: %(default)s)")
    parser.add_argument(
        '-s', '--schemes', metavar='SCHEME', nargs='+',
        default=list(DEFAULT_URL_SCHEMES),
        help="The URL schemes permitted in url mode (default: %(default)s)")
    config = parser.parse_args(args)
    terminal.configure_logging(config.log_level, config.log_file)

    logging.info("ViewHelpers escaper version %s", __version__)
    if config.values:
        values = config.values
    else:
        values = (line.rstrip('\n') for line in sys.stdin)
    for value in values:
        print(escape(value, config.mode, config.schemes))
    return 0


def escape(value, mode='text', schemes=DEFAULT_URL_SCHEMES):
    """
    Escape *value* according to *mode* (one of the keys of :data:`MODES`).
    URLs rejected in url mode are reported as a warning and output as an
    empty line.
    """
    result = MODES[mode](value, tuple(schemes))
    if mode == 'url' and value and not result:
        logging.warning('Rejected URL %r', value)
    else:
        logging.debug('Escaped %r as %r', value, result)
    return result
