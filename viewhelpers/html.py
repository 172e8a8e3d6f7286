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
Defines the HTML node tree used by the helpers. :class:`TagFactory` produces
:class:`HtmlNode` instances, and :class:`HtmlBuilder` accumulates them into a
tree which can be serialized as a single :class:`~.escape.literal`.

.. autoclass:: HtmlNode

.. autoclass:: TagFactory

.. autoclass:: HtmlBuilder
"""

from collections import OrderedDict

from .escape import literal, escape_html


class content(str):
    "A str sub-class which escapes content for inclusion in HTML"
    def __html__(self):
        return escape_html(str(self))


def quote(value):
    """
    Return *value* quoted for inclusion within a double-quoted attribute value.
    :class:`~.escape.literal` values are returned unchanged.
    """
    if isinstance(value, literal):
        return value
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    return literal(str(value).\
            replace('&', '&amp;').\
            replace('"', '&quot;').\
            replace('<', '&lt;').\
            replace('>', '&gt;'))


def html(s):
    "Return s in a form suitable for inclusion in an HTML document"
    if hasattr(s, '__html__'):
        return s.__html__()
    else:
        return content(s).__html__()


# The set of HTML elements which should never have a closing tag

EMPTY_ELEMENTS = (
    # From HTML4 standard
    'area',
    'base',
    'basefont',
    'br',
    'col',
    'frame',
    'hr',
    'img',
    'input',
    'isindex',
    'link',
    'meta',
    'param',
    # HTML5
    'source',
    'track',
    # Proprietary extensions
    'bgsound',
    'embed',
    'keygen',
    'spacer',
    'wbr',
    )


def attr_name(name):
    "Convert a Python keyword argument *name* into an HTML attribute name"
    return name.rstrip('_').replace('_', '-')


def attrs(kwargs):
    """
    Return an :class:`~collections.OrderedDict` of the keyword arguments in
    *kwargs* with their names converted by :func:`attr_name`.
    """
    return OrderedDict((attr_name(k), v) for k, v in kwargs.items())


class HtmlNode:
    """
    A single HTML element with a *tag* name, an ordered mapping of
    *attributes* and a list of *children* which may be strings (escaped on
    output), :class:`~.escape.literal` strings or other nodes.

    When *empty* is ``True`` the element is void (``<input>``) and never has a
    closing tag or content. Nodes created by a :class:`HtmlBuilder` can be
    used as context managers; within the ``with`` block, nodes created by the
    builder become children of this node.
    """
    def __init__(self, tag, attributes=None, children=None, empty=None,
                 xml=False):
        self.tag = tag
        self.attributes = OrderedDict(attributes or ())
        self.children = list(children or ())
        if empty is None:
            empty = tag.lower() in EMPTY_ELEMENTS
        self.empty = empty
        self.xml = xml
        self.builder = None

    def __repr__(self):
        return '<HtmlNode tag=%r attributes=%r children=%d>' % (
            self.tag, dict(self.attributes), len(self.children))

    def __enter__(self):
        if self.builder is None:
            raise RuntimeError('%s node is not attached to a builder' %
                               self.tag)
        self.builder.push(self.children)
        return self

    def __exit__(self, *exc):
        self.builder.pop()
        return False

    def _format_attributes(self):
        return ''.join(
            ' %s="%s"' % (
                k, quote(k if v is True else ('' if v is None else v)))
            for k, v in self.attributes.items()
            if v is not False
        )

    def __html__(self):
        if self.empty:
            template = '<%s%s/>' if self.xml else '<%s%s>'
            return literal(template % (self.tag, self._format_attributes()))
        return literal('<%s%s>%s</%s>' % (
            self.tag, self._format_attributes(),
            ''.join(html(child) for child in self.children),
            self.tag))

    def __str__(self):
        return self.__html__()


class TagFactory():
    """
    A factory class for generating XML/HTML elements (or tags).

    Instances of this class use __getattr__ magic to provide methods for
    generating any XML or HTML element. Calling a method with a particular name
    will return a :class:`HtmlNode` of that name. Any positional arguments will
    be used as content for the element, and any named arguments will be used
    as attributes for the element. If the element or attribute you wish to
    name is a reserved word in Python, you can simply append underscore ("_")
    to the name (all trailing underscore characters will be stripped
    implicitly); other underscores are converted to hyphens.

    For example::

        >>> tag = TagFactory()
        >>> str(tag.a())
        '<a></a>'
        >>> str(tag.a('foo'))
        '<a>foo</a>'
        >>> str(tag.a('foo', class_='baz'))
        '<a class="baz">foo</a>'

    Attributes set to ``None`` are rendered with an empty value, attributes
    set to ``False`` are omitted, and attributes set to ``True`` take their
    own name as their value::

        >>> str(tag.input(value=None, checked=True, disabled=False))
        '<input value="" checked="checked">'

    If the factory is instantiated with the xml parameter set to True, all
    empty tags are explicitly closed::

        >>> tag = TagFactory(xml=True)
        >>> str(tag.hr())
        '<hr/>'
    """
    def __init__(self, xml=False):
        self._xml = xml

    def _flatten(self, content):
        if isinstance(content, (str, HtmlNode)) or hasattr(content, '__html__'):
            yield content
        elif isinstance(content, bytes):
            yield content.decode('utf-8')
        else:
            try:
                items = iter(content)
            except TypeError:
                yield str(content)
            else:
                for item in items:
                    yield from self._flatten(item)

    def _generate(self, _tag, *args, **kwargs):
        _tag = _tag.rstrip('_')
        children = [
            child
            for arg in args
            if arg is not None
            for child in self._flatten(arg)
        ]
        return HtmlNode(_tag, attrs(kwargs), children, xml=self._xml)

    def __getattr__(self, attr):
        if attr.startswith('__'):
            raise AttributeError(attr)
        def generator(*args, **kwargs):
            return self._generate(attr, *args, **kwargs)
        setattr(self, attr, generator)
        return generator

tag = TagFactory()


class HtmlBuilder:
    """
    Accumulates :class:`HtmlNode` instances into a tree. Calling any tag
    method on the builder creates a node with a :class:`TagFactory`, appends
    it to the current parent and returns it. Using a returned node as a
    context manager makes it the parent of the nodes created within::

        b = HtmlBuilder()
        with b.fieldset():
            b.legend("Author")
            b.input(name="author")
        str(b)  # '<fieldset><legend>Author</legend><input name="author"></fieldset>'

    Nodes can also be appended directly with :meth:`append`.
    """
    def __init__(self, xml=False):
        self._factory = TagFactory(xml=xml)
        self._nodes = []
        self._stack = [self._nodes]

    @property
    def nodes(self):
        "The top-level nodes accumulated by the builder"
        return self._nodes

    def push(self, children):
        "Make *children* the list that newly created nodes are appended to"
        self._stack.append(children)

    def pop(self):
        "Restore the previous parent after a call to :meth:`push`"
        if len(self._stack) == 1:
            raise RuntimeError('cannot pop the root of the builder')
        return self._stack.pop()

    def append(self, node):
        "Append *node* (a node, string or literal) to the current parent"
        self._stack[-1].append(node)
        if isinstance(node, HtmlNode):
            node.builder = self
        return node

    def element(self, _tag, *args, **kwargs):
        "Create a *_tag* node, append it to the current parent and return it"
        return self.append(self._factory._generate(_tag, *args, **kwargs))

    def text(self, value):
        "Append *value* as (escaped) text content to the current parent"
        return self.append(value)

    def __getattr__(self, attr):
        if attr.startswith('_'):
            raise AttributeError(attr)
        def generator(*args, **kwargs):
            return self.element(attr, *args, **kwargs)
        return generator

    def __html__(self):
        return literal(''.join(html(node) for node in self._nodes))

    def __str__(self):
        return self.__html__()
