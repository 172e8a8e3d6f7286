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
The viewhelpers project provides the HTML generating helpers for the view
layer of a web application:

* :mod:`viewhelpers.escape` - context-aware escaping of values for HTML text,
  attributes and URLs, and the :class:`~viewhelpers.escape.literal` type for
  markup which must not be escaped.

* :mod:`viewhelpers.form` - a form builder which generates nested form markup
  bound to submitted parameters and model values, including HTTP method
  override and CSRF token fields.

The following script is also defined:

* ``vh-escape`` - escapes its arguments (or standard input) for a chosen HTML
  context; handy for checking what a template will output.
"""

# Stop pylint's crusade against nicely aligned code
# pylint: disable=bad-whitespace

__project__      = 'viewhelpers'
__version__      = '0.3'
__keywords__     = ['html', 'escape', 'forms', 'csrf', 'views']
__author__       = 'Ben Nuttall'
__author_email__ = 'ben@bennuttall.com'
__url__          = 'https://github.com/bennuttall/viewhelpers'
__platforms__    = 'ALL'

__requires__ = ['configargparse', 'voluptuous']

__extra_requires__ = {
    'test':    ['pytest', 'coverage'],
}

__classifiers__ = [
    'Development Status :: 4 - Beta',
    'Environment :: Web Environment',
    'Intended Audience :: Developers',
    'License :: OSI Approved :: BSD License',
    'Operating System :: OS Independent',
    'Programming Language :: Python :: 3',
    'Topic :: Text Processing :: Markup :: HTML',
]

__entry_points__ = {
    'console_scripts': [
        'vh-escape = viewhelpers.escape_cmd:main',
    ],
}
