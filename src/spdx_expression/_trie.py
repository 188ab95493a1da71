#
# Copyright (c) nexB Inc. and others. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
# See http://www.apache.org/licenses/LICENSE-2.0 for the license text.
# See https://github.com/aboutcode-org/license-expression for support or download.
# See https://aboutcode.org for more information about nexB OSS projects.
#
"""
A character Trie used to find the longest known name at the start of a string.

Derived from a public domain Aho-Corasick implementation by Wojciech Muła
(http://0x80.pl), reduced to a plain Trie and extended with:
 - case insensitive keys, keeping the original key in each Output
 - longest prefix lookups anchored at a string position
"""

# used to distinguish from None
nil = object()


class Trie(object):
    """
    A Trie mapping key strings to arbitrary values. With `ignore_case`, keys
    are stored and looked up lowercased.
    """

    def __init__(self, ignore_case=True):
        self.root = TrieNode('')
        self.ignore_case = ignore_case
        self.size = 0

    def _normalize(self, key):
        return self.ignore_case and key.lower() or key

    def add(self, key, value=None):
        """
        Add a (key, value) pair to the trie. If the key already exists its value
        is replaced with the provided value. Empty keys are ignored.
        """
        if not key:
            return

        node = self.root
        for char in self._normalize(key):
            try:
                node = node.children[char]
            except KeyError:
                child = TrieNode(char)
                node.children[char] = child
                node = child

        if node.output is nil:
            self.size += 1
        # we always store the original key, not a possibly lowercased version
        node.output = Output(key, value)

    def __len__(self):
        return self.size

    def __get_node(self, key):
        node = self.root
        for char in self._normalize(key):
            try:
                node = node.children[char]
            except KeyError:
                return None
        return node

    def get(self, key, default=nil):
        """
        Return the Output associated with a `key`. If there is no such key,
        return `default` or raise a KeyError if no default is provided.
        """
        node = self.__get_node(key)
        output = node.output if node else nil
        if output is nil:
            if default is nil:
                raise KeyError(key)
            return default
        return output

    def longest_prefix(self, string, start=0):
        """
        Return a (length, Output) tuple for the longest key that is a prefix of
        `string` starting at the `start` index, or None if no key matches.
        `length` counts characters of the original `string`.

        For example:
        >>> t = Trie()
        >>> t.add('gpl', 1)
        >>> t.add('gpl v2', 2)
        >>> length, output = t.longest_prefix('GPL v2 or MIT')
        >>> length, output.value
        (6, 2)
        >>> t.longest_prefix('lgpl') is None
        True
        """
        node = self.root
        longest = None
        for end in range(start, len(string)):
            # a character may lowercase to several characters: such a
            # sequence never matches a single node child
            node = node.children.get(self._normalize(string[end]))
            if node is None:
                break
            if node.output is not nil:
                longest = end + 1 - start, node.output
        return longest


class TrieNode(object):
    """
    Node of the Trie.
    """
    __slots__ = ['char', 'output', 'children']

    def __init__(self, char, output=nil):
        self.char = char
        # Output for a node that terminates a key, or nil
        self.output = output
        # mapping of char->node
        self.children = {}

    def __repr__(self):
        if self.output is not nil:
            return 'TrieNode(%r, %r)' % (self.char, self.output)
        else:
            return 'TrieNode(%r)' % self.char


class Output(object):
    """
    An Output tracks a key added to the Trie and the value for that key.

    - `key` is the original key unmodified string.
    - `value` is the associated value for this key.
    """
    __slots__ = 'key', 'value'

    def __init__(self, key, value=None):
        self.key = key
        self.value = value

    def __repr__(self):
        return self.__class__.__name__ + '(%r, %r)' % (self.key, self.value)

    def __eq__(self, other):
        return (
            isinstance(other, Output)
            and self.key == other.key
            and self.value == other.value)

    def __hash__(self):
        return hash((self.key, self.value,))
