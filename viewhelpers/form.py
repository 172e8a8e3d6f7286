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
Defines :class:`FormBuilder`, which generates HTML forms bound to submitted
parameters and model values, along with the :func:`form_for` entry point and
the :class:`FormHelper` view mix-in.

A form is described by a *block*: a callable which receives the builder and
calls its field methods. Field groups nest with ``with``::

    def book_form(f):
        f.text_field('title')
        with f.fields_for('author'):
            f.text_field('name')
        f.submit('Create')

    str(form_for('book', '/books', book_form, method='patch'))

.. autoclass:: Form

.. autoclass:: FormBuilder
    :members:

.. autofunction:: form_for

.. autoclass:: FormHelper

.. autoexception:: FormError
"""

import re
import logging
from collections import OrderedDict, namedtuple
from collections.abc import Mapping, Set
from contextlib import contextmanager

from voluptuous import (
    Schema, Invalid, Any, All, Length, Optional, Extra, ExactSequence)

from .escape import escape_url
from .html import HtmlBuilder, HtmlNode, attrs
from .values import Values


logger = logging.getLogger('viewhelpers.form')


# Stop pylint's crusade against nicely aligned code
# pylint: disable=bad-whitespace

# Set of HTTP methods that are understood by web browsers
BROWSER_METHODS = ('GET', 'POST')

# Set of HTTP methods that should NOT generate a CSRF token
EXCLUDED_CSRF_METHODS = ('GET',)

DEFAULT_METHOD          = 'POST'
DEFAULT_CHARSET         = 'utf-8'
METHOD_OVERRIDE_FIELD   = '_method'
CSRF_TOKEN_FIELD        = '_csrf_token'
CHECKED                 = 'checked'
SELECTED                = 'selected'
ACCEPT_SEPARATOR        = ','
DEFAULT_UNCHECKED_VALUE = '0'
DEFAULT_CHECKED_VALUE   = '1'

INPUT_ID_TOKEN = re.compile(r'\[([\w\-]*)\]')
INPUT_NAME_SEPARATOR = re.compile(r'[\[\]]+')

FORM_NAME = Schema(All(str, Length(min=1)))

FORM_ATTRIBUTES = Schema({
    Optional('method'): Any(str, None),
    Optional('action'): Any(str, None),
    Extra: object,
})

# Each option is either a bare value (used as its content too) or a
# (content, value) pair
SELECT_OPTION = Any(str, int, float, ExactSequence([object, object]))

SELECT_VALUES = Schema(Any(Mapping, [SELECT_OPTION], (SELECT_OPTION,)))

SELECT_OPTIONS = Schema({
    Optional('prompt'): Any(str, None),
    Optional('selected'): object,
    Extra: object,
})

DATALIST_VALUES = Schema(Any(Mapping, list, tuple))


class FormError(ValueError):
    "Raised when a form or one of its fields is given malformed options"


def _validate(schema, data, what):
    try:
        schema(data)
    except Invalid as exc:
        raise FormError('invalid %s: %s' % (what, exc)) from exc


def underscore(s):
    "Convert CamelCase and hyphenated *s* to lower-case snake_case"
    s = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', s)
    s = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', s)
    return s.replace('-', '_').lower()


def dasherize(s):
    "Convert *s* to lower-case kebab-case"
    return re.sub(r'[_\s]', '-', underscore(s))


def humanize(s):
    "Convert a field name like ``first_name`` to a label like ``First name``"
    s = re.sub(r'[_\s]+', ' ', underscore(str(s))).strip()
    return s[:1].upper() + s[1:]


def _is_collection(value):
    return isinstance(value, (list, tuple, Set))


def _matches(current, value):
    return (
        current is not None and
        not _is_collection(current) and
        str(current) == str(value)
    )


def _contains(collection, value):
    return str(value) in {str(item) for item in collection}


class Form(namedtuple('Form', ('name', 'url', 'values', 'attributes'))):
    """
    The identity of a form: its root *name* (which prefixes every field name),
    the *url* it submits to, the model *values* used to fill its fields (a
    mapping keyed by root name) and any extra *attributes* for the ``form``
    element.
    """
    __slots__ = ()

    def __new__(cls, name, url=None, values=None, attributes=None):
        _validate(FORM_NAME, name, 'form name')
        return super().__new__(
            cls, name, url,
            values if values is not None else {},
            OrderedDict(attrs(attributes or {})))


class FormBuilder:
    """
    Generates the markup of a form.

    A *top-level* builder is constructed with a :class:`Form`, a non-empty
    mapping of *attributes* for the ``form`` element, the view *context* (an
    object with a ``params`` mapping and, optionally, a ``csrf_token`` value
    or callable) and the *block* which describes the form's fields. Rendering
    it (with :func:`str` or :func:`~.html.html`) produces the complete
    ``form`` element, including the method override and CSRF token fields.

    A *nested* builder is constructed with a name and an existing
    :class:`~.values.Values` instance; rendering it produces just the fields
    added to it.

    Any method not defined here (``fieldset``, ``legend``, ``div`` ...)
    creates the corresponding element, as with
    :class:`~.html.HtmlBuilder`.
    """
    def __init__(self, form, attributes=None, context=None, block=None):
        self._html = HtmlBuilder()
        self._context = context
        self._block = block
        self._verb = None
        self._verb_method = None
        self._csrf_token = None
        self._rendered = None
        if context is None and isinstance(attributes, Values):
            self._name = form
            self._values = attributes
            self._attributes = OrderedDict()
        else:
            self._name = form.name
            self._values = Values(
                form.values, getattr(context, 'params', None))
            self._attributes = OrderedDict(attributes or ())
            self._verb_method = self._get_verb_method()
            self._csrf_token = self._get_csrf_token()

    def __repr__(self):
        return '<FormBuilder name=%r toplevel=%r>' % (self._name,
                                                      self.toplevel)

    def __getattr__(self, attr):
        if attr.startswith('_'):
            raise AttributeError(attr)
        return getattr(self._html, attr)

    @property
    def name(self):
        "The current name prefix of the builder"
        return self._name

    @property
    def values(self):
        "The :class:`~.values.Values` fields are resolved against"
        return self._values

    @property
    def toplevel(self):
        "``True`` if this builder renders a complete ``form`` element"
        return bool(self._attributes)

    @property
    def verb(self):
        """
        The HTTP verb carried by the method override field, or ``None`` if
        the browser can submit the form's method directly.
        """
        return self._verb

    @property
    def csrf_token(self):
        "The CSRF token included in the form, or ``None``"
        return self._csrf_token

    def __html__(self):
        if self._rendered is not None:
            return self._rendered
        if self.toplevel:
            # start each attempt from an empty tree
            self._html = HtmlBuilder()
            self._method_override()
            form = self._element('form', self._attributes)
            with form:
                if self._verb is not None:
                    self.hidden_input(METHOD_OVERRIDE_FIELD, self._verb)
                if self._csrf_token is not None:
                    self.hidden_input(CSRF_TOKEN_FIELD, self._csrf_token)
                if self._block is not None:
                    self._block(self)
            self._rendered = self._html.__html__()
            return self._rendered
        if self._block is not None:
            block, self._block = self._block, None
            block(self)
        return self._html.__html__()

    def __str__(self):
        return self.__html__()

    @contextmanager
    def fields_for(self, name):
        """
        Returns a context manager which nests the fields created within it
        under *name*::

            with f.fields_for('address'):
                f.text_field('street')   # name="delivery[address][street]"

        The previous name prefix is restored when the block exits, whether
        normally or with an exception.
        """
        current_name = self._name
        self._name = self._input_name(name)
        try:
            yield self
        finally:
            self._name = current_name

    def fields_for_collection(self, name, block):
        """
        Calls *block* with the builder once for each element of the
        collection found at *name*, nesting the fields of each call under its
        index (``book[authors][0][name]``, ``book[authors][1][name]`` ...).
        """
        current_name = self._name
        collection = self._value(name)
        self._name = self._input_name(name)
        try:
            for index, _ in enumerate(collection or ()):
                with self.fields_for(index):
                    block(self)
        finally:
            self._name = current_name

    def label(self, name, content=None, for_=None, **attributes):
        """
        Creates a ``label`` for the field *name*. The *content* defaults to
        the humanized field name and the ``for`` attribute to the id of the
        field. A string given as *for_* is used verbatim; any other value is
        treated as the name of the field to point at.
        """
        if content is None:
            content = humanize(name)
        if for_ is None:
            for_ = self._input_id(name)
        elif not isinstance(for_, str):
            for_ = self._input_id(for_)
        return self._element('label', self._merge(OrderedDict([
            ('for', for_),
        ]), attributes), content)

    def check_box(self, name, checked_value=DEFAULT_CHECKED_VALUE,
                  unchecked_value=None, **attributes):
        """
        Creates a checkbox, preceded by a hidden field carrying
        *unchecked_value* (default "0") so that a value is submitted even when
        the box is unchecked.

        When an explicit ``value`` is given without an *unchecked_value* the
        checkbox is treated as one option of a multi-value field and the
        hidden field is omitted.
        """
        attributes = attrs(attributes)
        if attributes.get('value') is None or unchecked_value is not None:
            self._element('input', OrderedDict([
                ('type', 'hidden'),
                ('name', attributes.get('name') or self._input_name(name)),
                ('value', unchecked_value
                          if unchecked_value is not None
                          else DEFAULT_UNCHECKED_VALUE),
            ]))
        attributes = self._merge(OrderedDict([
            ('type', 'checkbox'),
            ('name', self._input_name(name)),
            ('id', self._input_id(name)),
            ('value', checked_value),
        ]), attributes)
        if self._check_box_checked(attributes['value'], self._value(name)):
            attributes['checked'] = CHECKED
        return self._element('input', attributes)

    def color_field(self, name, **attributes):
        return self._input('color', name, attributes)

    def date_field(self, name, **attributes):
        return self._input('date', name, attributes)

    def datetime_field(self, name, **attributes):
        return self._input('datetime', name, attributes)

    def datetime_local_field(self, name, **attributes):
        return self._input('datetime-local', name, attributes)

    def time_field(self, name, **attributes):
        return self._input('time', name, attributes)

    def month_field(self, name, **attributes):
        return self._input('month', name, attributes)

    def week_field(self, name, **attributes):
        return self._input('week', name, attributes)

    def email_field(self, name, **attributes):
        return self._input('email', name, attributes)

    def url_field(self, name, **attributes):
        return self._input('url', name, attributes)

    def tel_field(self, name, **attributes):
        return self._input('tel', name, attributes)

    def search_field(self, name, **attributes):
        return self._input('search', name, attributes)

    def hidden_field(self, name, **attributes):
        return self._input('hidden', name, attributes)

    def number_field(self, name, **attributes):
        return self._input('number', name, attributes)

    def range_field(self, name, **attributes):
        return self._input('range', name, attributes)

    def text_field(self, name, **attributes):
        return self._input('text', name, attributes)

    input_text = text_field

    def file_field(self, name, **attributes):
        """
        Creates a file input. The ``accept`` attribute may be a single MIME
        type or a sequence of them.
        """
        attributes = attrs(attributes)
        if 'accept' in attributes:
            accept = attributes['accept']
            if accept is None:
                accept = ()
            elif isinstance(accept, str):
                accept = (accept,)
            attributes['accept'] = ACCEPT_SEPARATOR.join(
                str(item) for item in accept)
        return self._element('input', self._merge(OrderedDict([
            ('type', 'file'),
            ('name', self._input_name(name)),
            ('id', self._input_id(name)),
        ]), attributes))

    def text_area(self, name, content=None, **attributes):
        """
        Creates a ``textarea``; its *content* defaults to the current value
        of the field.
        """
        if content is None:
            content = self._value(name)
        return self._element('textarea', self._merge(OrderedDict([
            ('name', self._input_name(name)),
            ('id', self._input_id(name)),
        ]), attributes), '\n', content)

    def radio_button(self, name, value, **attributes):
        "Creates a radio button, checked if the field's value is *value*"
        attributes = self._merge(OrderedDict([
            ('type', 'radio'),
            ('name', self._input_name(name)),
            ('value', value),
        ]), attributes)
        if _matches(self._value(name), value):
            attributes['checked'] = CHECKED
        return self._element('input', attributes)

    def password_field(self, name, **attributes):
        "Creates a password input; its value is never filled in"
        return self._element('input', self._merge(OrderedDict([
            ('type', 'password'),
            ('name', self._input_name(name)),
            ('id', self._input_id(name)),
            ('value', None),
        ]), attributes))

    def select(self, name, values, options=None, **attributes):
        """
        Creates a ``select`` with one ``option`` for each content, value pair
        in *values*, which is a mapping or a sequence of pairs. A bare value
        in the sequence is used as its own content. The *options* mapping may
        contain a ``prompt`` (an initial option without a value), an explicit
        ``selected`` value (overriding the field's current value) and any
        other attributes to apply to each option.
        """
        _validate(SELECT_VALUES, values, 'select values')
        options = OrderedDict(options or ())
        _validate(SELECT_OPTIONS, options, 'select options')
        attributes = attrs(attributes)
        multiple = attributes.get('multiple')
        attributes = self._merge(OrderedDict([
            ('name', self._select_input_name(name, multiple)),
            ('id', self._input_id(name)),
        ]), attributes)
        prompt = options.pop('prompt', None)
        selected = options.pop('selected', None)
        input_value = self._value(name)
        node = self._element('select', attributes)
        with node:
            if prompt is not None:
                self._element('option', OrderedDict(), prompt)
            if isinstance(values, Mapping):
                items = values.items()
            else:
                items = (
                    item if isinstance(item, (list, tuple)) else (item, item)
                    for item in values
                )
            for content, value in items:
                option = OrderedDict([('value', value)])
                if self._option_selected(value, selected, input_value,
                                         multiple):
                    option['selected'] = SELECTED
                option.update(attrs(options))
                self._element('option', option, content)
        return node

    def datalist(self, name, values, list_id, options=None, datalist=None,
                 **attributes):
        """
        Creates a text input suggesting *values* through a ``datalist``
        element with the id *list_id*. *values* is either a sequence of
        values or a mapping of values to their content.
        """
        _validate(DATALIST_VALUES, values, 'datalist values')
        attributes = attrs(attributes)
        attributes['list'] = list_id
        self._input('text', name, attributes)
        datalist = attrs(datalist or {})
        datalist['id'] = list_id
        node = self._element('datalist', datalist)
        with node:
            if isinstance(values, Mapping):
                items = values.items()
            else:
                items = ((value, None) for value in values)
            for value, content in items:
                option = OrderedDict([('value', value)])
                option.update(attrs(options or {}))
                self._element('option', option, content)
        return node

    def submit(self, content, **attributes):
        "Creates a submit ``button``"
        return self._element('button', self._merge(OrderedDict([
            ('type', 'submit'),
        ]), attributes), content)

    def button(self, content, **attributes):
        return self._element('button', self._merge(OrderedDict([
            ('type', 'button'),
        ]), attributes), content)

    def image_button(self, source, **attributes):
        return self._element('input', self._merge(OrderedDict([
            ('type', 'image'),
            ('src', escape_url(source)),
        ]), attributes))

    def hidden_input(self, name, value):
        "Creates a hidden input with the literal *name* (not prefixed)"
        return self._element('input', OrderedDict([
            ('type', 'hidden'),
            ('name', name),
            ('value', value),
        ]))

    def _element(self, _tag, attributes, *content):
        return self._html.append(HtmlNode(
            _tag, attributes, [c for c in content if c is not None]))

    @staticmethod
    def _merge(defaults, attributes):
        defaults.update(attrs(attributes))
        return defaults

    def _input(self, type_, name, attributes):
        return self._element('input', self._merge(OrderedDict([
            ('type', type_),
            ('name', self._input_name(name)),
            ('id', self._input_id(name)),
            ('value', self._value(name)),
        ]), attributes))

    def _get_verb_method(self):
        method = self._attributes.get('method')
        if method is None:
            method = DEFAULT_METHOD
        return str(method).upper()

    def _get_csrf_token(self):
        if self._verb_method in EXCLUDED_CSRF_METHODS:
            logger.debug('%s form %s: no CSRF token', self._verb_method,
                         self._name)
            return None
        token = getattr(self._context, 'csrf_token', None)
        if callable(token):
            token = token()
        if token is None:
            logger.debug('form %s: context provides no CSRF token', self._name)
        return token

    def _method_override(self):
        if self._verb_method in BROWSER_METHODS:
            self._attributes['method'] = self._verb_method
        else:
            logger.debug('form %s: overriding %s with %s', self._name,
                         self._verb_method, DEFAULT_METHOD)
            self._attributes['method'] = DEFAULT_METHOD
            self._verb = self._verb_method

    def _input_name(self, name):
        return '%s[%s]' % (self._name, name)

    def _input_id(self, name):
        return dasherize(INPUT_ID_TOKEN.sub(r'-\1', self._input_name(name)))

    def _value(self, name):
        return self._values.get(*(
            key
            for key in INPUT_NAME_SEPARATOR.split(self._input_name(name))
            if key
        ))

    def _select_input_name(self, name, multiple):
        select_name = self._input_name(name)
        if multiple:
            select_name += '[]'
        return select_name

    @staticmethod
    def _option_selected(value, selected, input_value, multiple):
        current = selected if selected is not None else input_value
        return _matches(current, value) or (
            bool(multiple) and
            _is_collection(current) and
            _contains(current, value)
        )

    @staticmethod
    def _check_box_checked(value, input_value):
        if input_value is None:
            return False
        return (
            input_value is True or
            _matches(input_value, value) or
            (_is_collection(input_value) and _contains(input_value, value))
        )


def form_for(form, url=None, block=None, values=None, context=None,
             **attributes):
    """
    Return a top-level :class:`FormBuilder` for *form*, which is either a
    :class:`Form` or the name of one (in which case *url* and *values* are
    used to construct it). The ``form`` element's attributes default to::

        action="<url>" method="POST" accept-charset="utf-8" id="<name>-form"

    and are overridden by the form's own attributes, then by *attributes*.
    *context* provides the request ``params`` and ``csrf_token``.
    """
    if not isinstance(form, Form):
        form = Form(form, url, values)
    attributes = attrs(attributes)
    _validate(FORM_ATTRIBUTES, dict(attributes), 'form attributes')
    result = OrderedDict([
        ('action', form.url),
        ('method', DEFAULT_METHOD),
        ('accept-charset', DEFAULT_CHARSET),
        ('id', '%s-form' % dasherize(form.name)),
    ])
    result.update(form.attributes)
    result.update(attributes)
    return FormBuilder(form, result, context, block)


class FormHelper:
    """
    Mix-in for view classes which provides :meth:`form_for`. The view itself
    is the context of the form, so it is expected to provide ``params`` and
    (for forms which need one) ``csrf_token``.
    """
    def form_for(self, form, url=None, block=None, values=None, **attributes):
        return form_for(form, url, block, values=values, context=self,
                        **attributes)
