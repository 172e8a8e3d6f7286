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
Defines the escaping functions used to safely include values in HTML
documents, along with the :class:`literal` type which marks content that has
already been escaped (or is trusted) and must be passed through untouched.

.. autoclass:: literal

.. autofunction:: escape_html

.. autofunction:: escape_html_attribute

.. autofunction:: escape_html_attribute_hex

.. autofunction:: escape_url

.. autofunction:: raw

.. autoclass:: EscapeHelper
"""

import re
from html.entities import codepoint2name
from urllib.parse import urlsplit


class literal(str):
    "A str sub-class that assumes its content is HTML"
    def __html__(self):
        return self


# Stop pylint's crusade against nicely aligned code
# pylint: disable=bad-whitespace

HTML_CHARS = str.maketrans({
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    "'": '&apos;',
    '"': '&quot;',
    '/': '&#x2F;',
})

HTML_ATTRIBUTE_SAFE_CHARS = frozenset(',.-_')

# Control characters which are replaced with U+FFFD by the hex profile; tab,
# line-feed and carriage-return are left to the ordinary hex encoding
NON_PRINTABLE_CHARS = frozenset(
    [c for c in range(0x00, 0x20) if c not in (0x09, 0x0a, 0x0d)] +
    list(range(0x7f, 0xa0))
)

REPLACEMENT_HEX = 'fffd'

DEFAULT_URL_SCHEMES = ('http', 'https', 'mailto')

# Anything a browser would treat as the end of an attribute or a URL
URL_FORBIDDEN = re.compile(r'[\s"\'<>`\\\x00-\x1f\x7f]')

MAILTO_ADDRESS = re.compile(r'^[^@\s]+@[^@\s]+$')


def _text(value, errors='replace'):
    if value is None:
        return ''
    elif isinstance(value, bytes):
        return value.decode('utf-8', errors)
    else:
        return str(value)


def escape_html(value):
    """
    Return *value* escaped for inclusion as text content in an HTML document.
    :class:`literal` values are returned unchanged, and ``None`` becomes the
    empty string.
    """
    if isinstance(value, literal):
        return value
    return literal(_text(value).translate(HTML_CHARS))


def escape_html_attribute(value):
    """
    Return *value* escaped for inclusion within a quoted attribute value. This
    uses the same table as :func:`escape_html`.
    """
    if isinstance(value, literal):
        return value
    return literal(_text(value).translate(HTML_CHARS))


def _encode_char(char):
    if char in HTML_ATTRIBUTE_SAFE_CHARS:
        return char
    code = ord(char)
    if code < 0x80 and char.isalnum():
        return char
    if code in NON_PRINTABLE_CHARS:
        return '&#x%s;' % REPLACEMENT_HEX
    try:
        return '&%s;' % codepoint2name[code]
    except KeyError:
        return '&#x%x;' % code


def escape_html_attribute_hex(value):
    """
    Return *value* escaped with the strict attribute profile: everything other
    than ASCII alphanumerics and ``,.-_`` is replaced by a named entity where
    HTML defines one, or a lower-case hexadecimal character reference
    otherwise. For example::

        >>> escape_html_attribute_hex("alert('xss')")
        'alert&#x28;&#x27;xss&#x27;&#x29;'
    """
    if isinstance(value, literal):
        return value
    return literal(''.join(_encode_char(char) for char in _text(value)))


def escape_url(value, schemes=DEFAULT_URL_SCHEMES):
    """
    Return *value* unchanged if it is a well-formed absolute URL using one of
    the permitted *schemes*, or the empty string otherwise. The URL itself is
    not HTML escaped; this only gates which URLs are allowed through.
    """
    if isinstance(value, literal):
        return value
    try:
        url = _text(value, errors='strict')
    except UnicodeDecodeError:
        return literal('')
    if not url or URL_FORBIDDEN.search(url):
        return literal('')
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return literal('')
    if parts.scheme.lower() not in schemes:
        return literal('')
    if parts.scheme.lower() == 'mailto':
        if not MAILTO_ADDRESS.match(parts.path):
            return literal('')
    elif not parts.hostname:
        return literal('')
    return literal(url)


def raw(value):
    "Mark *value* as trusted markup which must never be escaped"
    return literal(_text(value))


class EscapeHelper:
    """
    Mix-in for view classes which provides the escaping functions as methods,
    along with their traditional short aliases (``h``, ``ha`` and ``hu``).
    """
    def escape_html(self, value):
        return escape_html(value)

    def escape_html_attribute(self, value):
        return escape_html_attribute(value)

    def escape_url(self, value, schemes=DEFAULT_URL_SCHEMES):
        return escape_url(value, schemes)

    def raw(self, value):
        return raw(value)

    h = escape_html
    ha = escape_html_attribute
    hu = escape_url
