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
Defines :class:`Values`, the read-only lookup used by the form builder to find
the current value of a field.

.. autoclass:: Values
    :members:
"""

from collections.abc import Mapping, Sequence


def _index(key):
    try:
        return int(key)
    except (TypeError, ValueError):
        return None


def _step(source, key):
    if source is None:
        return None
    elif isinstance(source, Mapping):
        result = source.get(key)
        if result is None and _index(key) is not None:
            result = source.get(_index(key))
        return result
    elif isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
        index = _index(key)
        if index is None:
            return None
        try:
            return source[index]
        except IndexError:
            return None
    else:
        return getattr(source, str(key), None)


class Values:
    """
    Resolves field values from the submitted *params* (a nested mapping, as
    produced by the framework's parameter parser), falling back to the model
    *values* (a mapping of root names to mappings, sequences or arbitrary
    objects whose attributes are read).

    Neither source is ever modified.
    """
    def __init__(self, values=None, params=None):
        self._values = values if values is not None else {}
        self._params = params if params is not None else {}

    def __repr__(self):
        return '<Values values=%r params=%r>' % (self._values, self._params)

    def get(self, *keys):
        """
        Return the value found at the path *keys* in the parameters, or in the
        model values if the parameters have nothing (or ``None``) there.
        Returns ``None`` if neither source has a value.
        """
        result = self._dig(self._params, keys)
        if result is None:
            result = self._dig(self._values, keys)
        return result

    @staticmethod
    def _dig(source, keys):
        result = source
        for key in keys:
            result = _step(result, key)
            if result is None:
                break
        return result
