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


import copy

from viewhelpers.values import Values

from conftest import Book


def test_values_empty():
    values = Values()
    assert values.get('book', 'title') is None
    assert values.get() == {}


def test_values_from_params():
    values = Values(params={'book': {'title': 'TDD'}})
    assert values.get('book', 'title') == 'TDD'
    assert values.get('book', 'author') is None
    assert values.get('book', 'title', 'deeper') is None


def test_values_fallback_to_model(book):
    values = Values({'book': book}, {'book': {'store': 'us'}})
    assert values.get('book', 'store') == 'us'
    assert values.get('book', 'title') == 'Jungle Book'
    assert values.get('book', 'author', 'name') == 'Kipling'
    assert values.get('book', 'author', 'missing') is None
    assert values.get('book', 'publisher', 'name') is None


def test_values_params_none_falls_back(book):
    values = Values({'book': book}, {'book': {'title': None}})
    assert values.get('book', 'title') == 'Jungle Book'


def test_values_params_false_wins(book):
    values = Values({'book': book}, {'book': {'free_shipping': False}})
    assert values.get('book', 'free_shipping') is False


def test_values_sequences():
    values = Values(
        {'book': {'authors': [Book(name='Kipling'), {'name': 'Twain'}]}},
        {'book': {'tags': {'0': 'fiction', '1': 'classic'}}})
    assert values.get('book', 'authors', '0', 'name') == 'Kipling'
    assert values.get('book', 'authors', '1', 'name') == 'Twain'
    assert values.get('book', 'authors', '2', 'name') is None
    assert values.get('book', 'authors', 'first') is None
    assert values.get('book', 'tags', '1') == 'classic'


def test_values_integer_keyed_mappings():
    values = Values(params={'rows': {0: 'a', 1: 'b'}})
    assert values.get('rows', '1') == 'b'


def test_values_strings_are_not_indexed():
    values = Values({'book': {'title': 'Jungle Book'}})
    assert values.get('book', 'title', '0') is None


def test_values_never_mutates(book):
    params = {'book': {'title': 'TDD', 'authors': [{'name': 'Beck'}]}}
    model = {'book': {'title': 'Jungle Book'}}
    expected_params = copy.deepcopy(params)
    expected_model = copy.deepcopy(model)
    values = Values(model, params)
    values.get('book', 'title')
    values.get('book', 'authors', '0', 'name')
    values.get('book', 'missing', 'deeper')
    assert params == expected_params
    assert model == expected_model
